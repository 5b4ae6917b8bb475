"""
Fuel type values stored in the inventory and their display labels
"""

FUEL_TYPES = {
    "petrol": "Petrol",
    "diesel": "Diesel",
    "electric": "Electric",
    "hybrid": "Hybrid",
    "plug_in_hybrid": "Plug-in Hybrid",
}
