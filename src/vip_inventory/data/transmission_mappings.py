"""
Transmission and drive type values stored in the inventory and their display labels
"""

TRANSMISSION_TYPES = {
    "automatic": "Automatic",
    "manual": "Manual",
    "semi_automatic": "Semi-Automatic",
}

DRIVE_TYPES = {
    "fwd": "Front-Wheel Drive",
    "rwd": "Rear-Wheel Drive",
    "awd": "All-Wheel Drive",
    "4wd": "Four-Wheel Drive",
}
