"""
Catálogo de valores de filtro: marcas, carrocerías, combustibles, transmisiones y colores
"""
from typing import Dict, Optional

from .makes import CAR_BRANDS
from .fuel_mappings import FUEL_TYPES
from .transmission_mappings import DRIVE_TYPES, TRANSMISSION_TYPES
from .body_mappings import BODY_TYPES, EXTERIOR_COLORS


def label_for(mapping: Dict[str, str], value: Optional[str]) -> str:
    """Devuelve la etiqueta visible de un valor, o el propio valor si no está mapeado"""
    if not value:
        return "N/A"
    return mapping.get(value, value)


__all__ = [
    "CAR_BRANDS",
    "FUEL_TYPES",
    "TRANSMISSION_TYPES",
    "DRIVE_TYPES",
    "BODY_TYPES",
    "EXTERIOR_COLORS",
    "label_for",
]
