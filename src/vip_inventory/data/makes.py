"""
Marcas que se muestran en el selector de marca del inventario
"""

CAR_BRANDS = [
    "Aston Martin",
    "Audi",
    "Bentley",
    "BMW",
    "Bugatti",
    "Ferrari",
    "Lamborghini",
    "Land Rover",
    "Maserati",
    "McLaren",
    "Mercedes-Benz",
    "Porsche",
    "Rolls-Royce",
    "Tesla",
]
