"""
URL builder utilities for the shop page and QR code targets
"""
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse

from ..filters import FilterSelection, deserialize, serialize

SHOP_PATH = "/shop"


def build_shop_url(selection: FilterSelection, base_url: Optional[str] = None) -> str:
    """
    Build the shareable shop URL for a filter selection

    URL format: <base>/shop?params
    Parameters (only active facets are written):
    - brand=NAME, model=TEXT
    - minPrice / maxPrice, minYear / maxYear, minMileage / maxMileage
    - bodyType, fuelType, transmission, color: comma-joined values (e.g. bodyType=suv,coupe)
    - sortBy=KEY (omitted for the default "newest")
    """
    base = (base_url or "").rstrip("/")
    query = serialize(selection)
    if not query:
        return f"{base}{SHOP_PATH}"
    # Las comas se dejan sin escapar para que la URL sea legible
    return f"{base}{SHOP_PATH}?{urlencode(query, safe=',')}"


def parse_shop_url(url: str) -> FilterSelection:
    """Reconstruye la selección desde una URL del buscador (si una clave se repite, gana la última)"""
    parsed = urlparse(url)
    query_string = parsed.query
    # HashRouter: https://host/#/shop?brand=...
    if not query_string and "?" in parsed.fragment:
        query_string = parsed.fragment.split("?", 1)[1]
    return deserialize(dict(parse_qsl(query_string, keep_blank_values=True)))


__all__ = ["build_shop_url", "parse_shop_url", "SHOP_PATH"]
