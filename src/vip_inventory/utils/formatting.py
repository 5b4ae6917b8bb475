"""
Formato de precios y kilometraje, y tabla comparativa de vehículos
"""
from typing import Callable, List, Optional, Sequence, Tuple

from ..data import BODY_TYPES, FUEL_TYPES, TRANSMISSION_TYPES, label_for
from ..models import VehicleListing


def format_price(amount: Optional[float], currency: str = "CHF") -> str:
    """Formato suizo: CHF 125'000 (sin decimales)"""
    if amount is None:
        return "Price on request"
    return f"{currency} {round(amount):,}".replace(",", "'")


def format_listing_price(listing: VehicleListing) -> str:
    """Precio del anuncio; si está rebajado se muestra también el anterior"""
    price = format_price(listing.price, listing.currency)
    if listing.is_price_reduced:
        return f"{price} (was {format_price(listing.original_price, listing.currency)})"
    return price


def format_mileage(mileage_km: Optional[int]) -> str:
    """45000 -> '45k km'; sin kilometraje se muestra como nuevo"""
    if not mileage_km:
        return "New"
    return f"{mileage_km / 1000:.0f}k km"


def _format_engine(engine_cc: Optional[int]) -> str:
    return f"{engine_cc / 1000:.1f}L" if engine_cc else "N/A"


# (etiqueta, función que extrae el valor ya formateado)
COMPARISON_SPECS: List[Tuple[str, Callable[[VehicleListing], str]]] = [
    ("Year", lambda car: str(car.year)),
    ("Mileage", lambda car: format_mileage(car.mileage)),
    ("Price", format_listing_price),
    ("Fuel Type", lambda car: label_for(FUEL_TYPES, car.fuel_type)),
    ("Transmission", lambda car: label_for(TRANSMISSION_TYPES, car.transmission)),
    ("Power", lambda car: f"{car.power_hp} HP" if car.power_hp else "N/A"),
    ("Body Type", lambda car: label_for(BODY_TYPES, car.body_type)),
    ("Drive Type", lambda car: car.drive_type.value.upper() if car.drive_type else "N/A"),
    ("Engine", lambda car: _format_engine(car.engine_cc)),
    ("Exterior Color", lambda car: car.exterior_color or "N/A"),
]


def compare_listings(listings: Sequence[VehicleListing], max_vehicles: int = 3) -> List[List[str]]:
    """
    Tabla comparativa lado a lado

    Returns:
        Filas [etiqueta, valor coche 1, valor coche 2, ...]; solo se comparan
        los primeros `max_vehicles` anuncios
    """
    compared = list(listings)[:max_vehicles]
    if not compared:
        return []
    return [[label] + [extract(car) for car in compared] for label, extract in COMPARISON_SPECS]


__all__ = ["format_price", "format_listing_price", "format_mileage", "compare_listings", "COMPARISON_SPECS"]
