"""
Pipeline de búsqueda del inventario: filtrado por facetas y ordenación

Todas las funciones son puras: reciben la colección y la selección y devuelven
una lista nueva. Da igual si la colección viene de memoria o de una consulta
remota ya filtrada, la semántica de cada faceta es la misma.
"""
from __future__ import annotations

import logging
from operator import attrgetter
from typing import Dict, Iterable, List, Optional, Tuple

from .filters import FilterSelection, SortBy
from .models import ListingStatus, VehicleListing

logger = logging.getLogger(__name__)

# Faceta múltiple de la selección -> atributo del anuncio
_SET_FACET_ATTRIBUTES = {
    "body_types": "body_type",
    "fuel_types": "fuel_type",
    "transmissions": "transmission",
    "colors": "exterior_color",
}

# Rangos inclusivos: (atributo del anuncio, límite inferior, límite superior)
_RANGE_FACETS = (
    ("price", "min_price", "max_price"),
    ("year", "min_year", "max_year"),
    ("mileage", "min_mileage", "max_mileage"),
)

# Criterio de orden -> (atributo, descendente)
_SORT_KEYS: Dict[SortBy, Tuple[str, bool]] = {
    SortBy.PRICE_LOW_TO_HIGH: ("price", False),
    SortBy.PRICE_HIGH_TO_LOW: ("price", True),
    SortBy.YEAR_OLD_TO_NEW: ("year", False),
    SortBy.YEAR_NEW_TO_OLD: ("year", True),
    SortBy.MILEAGE_LOW_TO_HIGH: ("mileage", False),
    SortBy.MILEAGE_HIGH_TO_LOW: ("mileage", True),
}


def matches(listing: VehicleListing, selection: FilterSelection) -> bool:
    """True si el anuncio cumple todas las facetas activas de la selección"""
    if selection.brand is not None:
        if listing.brand.casefold() != selection.brand.casefold():
            return False

    if selection.model is not None:
        if selection.model.casefold() not in listing.model.casefold():
            return False

    for attribute, low_field, high_field in _RANGE_FACETS:
        low = getattr(selection, low_field)
        high = getattr(selection, high_field)
        if low is None and high is None:
            continue
        value = getattr(listing, attribute)
        # Sin dato no se puede comprobar el rango
        if value is None:
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False

    for facet, attribute in _SET_FACET_ATTRIBUTES.items():
        accepted = getattr(selection, facet)
        if accepted and getattr(listing, attribute) not in accepted:
            return False

    return True


def sort_listings(listings: Iterable[VehicleListing], sort_by: SortBy = SortBy.NEWEST) -> List[VehicleListing]:
    """
    Ordena de forma estable según el criterio pedido.

    Desempate: fecha de creación descendente y después id ascendente. Los
    anuncios sin valor para el criterio (p. ej. sin kilometraje) van al final.
    """
    ordered = sorted(listings, key=attrgetter("id"))
    ordered.sort(key=attrgetter("created_at"), reverse=True)

    if sort_by not in _SORT_KEYS:
        return ordered

    attribute, descending = _SORT_KEYS[sort_by]
    present = [listing for listing in ordered if getattr(listing, attribute) is not None]
    missing = [listing for listing in ordered if getattr(listing, attribute) is None]
    # sort() es estable también con reverse=True
    present.sort(key=attrgetter(attribute), reverse=descending)
    return present + missing


def apply_filters(
    selection: FilterSelection,
    listings: Iterable[VehicleListing],
    *,
    status: Optional[ListingStatus] = None,
) -> List[VehicleListing]:
    """
    Devuelve los anuncios que cumplen la selección, ya ordenados.

    Args:
        selection: Selección de filtros
        listings: Colección de anuncios (cualquier orden)
        status: Restringe además por estado (p. ej. solo disponibles)

    Returns:
        Lista nueva con los anuncios coincidentes; vacía si no hay ninguno
    """
    listings = list(listings)
    matching = [
        listing
        for listing in listings
        if (status is None or listing.status == status) and matches(listing, selection)
    ]
    logger.debug("Filtros aplicados: %d de %d anuncios coinciden", len(matching), len(listings))
    return sort_listings(matching, selection.sort_by)


__all__ = ["matches", "sort_listings", "apply_filters"]
