"""
Body types and exterior colors offered as filter chips
"""

BODY_TYPES = {
    "sedan": "Sedan",
    "coupe": "Coupé",
    "convertible": "Convertible",
    "suv": "SUV",
    "hatchback": "Hatchback",
    "wagon": "Wagon",
    "supercar": "Supercar",
}

EXTERIOR_COLORS = [
    "Black",
    "White",
    "Silver",
    "Grey",
    "Blue",
    "Red",
    "Green",
    "Yellow",
    "Orange",
    "Brown",
]
