"""
Selección de filtros del inventario y su (de)serialización a query string

La selección es el único estado del buscador: cada faceta es opcional y su
ausencia significa "sin restricción". Se serializa a un mapa plano de strings
(las facetas múltiples se unen con comas) para poder compartir la búsqueda por URL.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import get_settings

logger = logging.getLogger(__name__)

# Límites de los sliders: un extremo equivale a "sin límite"
PRICE_SLIDER_MAX = get_settings().price_slider_max
MILEAGE_SLIDER_MAX = get_settings().mileage_slider_max

MIN_YEAR = 1900
MAX_YEAR = 2100


class SortBy(str, Enum):
    NEWEST = "newest"
    PRICE_LOW_TO_HIGH = "price_asc"
    PRICE_HIGH_TO_LOW = "price_desc"
    YEAR_NEW_TO_OLD = "year_desc"
    YEAR_OLD_TO_NEW = "year_asc"
    MILEAGE_LOW_TO_HIGH = "mileage_asc"
    MILEAGE_HIGH_TO_LOW = "mileage_desc"


SORT_LABELS = {
    SortBy.NEWEST: "Newest First",
    SortBy.PRICE_LOW_TO_HIGH: "Price: Low to High",
    SortBy.PRICE_HIGH_TO_LOW: "Price: High to Low",
    SortBy.YEAR_NEW_TO_OLD: "Year: Newest",
    SortBy.YEAR_OLD_TO_NEW: "Year: Oldest",
    SortBy.MILEAGE_LOW_TO_HIGH: "Mileage: Lowest",
    SortBy.MILEAGE_HIGH_TO_LOW: "Mileage: Highest",
}

# Facetas de selección múltiple: campo de la selección -> clave en la URL
SET_FACETS = {
    "body_types": "bodyType",
    "fuel_types": "fuelType",
    "transmissions": "transmission",
    "colors": "color",
}

# Rangos numéricos: campo -> (clave en la URL, tipo, mínimo, máximo)
NUMERIC_FACETS: Dict[str, Tuple[str, Type, float, Optional[float]]] = {
    "min_price": ("minPrice", float, 0, None),
    "max_price": ("maxPrice", float, 0, None),
    "min_year": ("minYear", int, MIN_YEAR, MAX_YEAR),
    "max_year": ("maxYear", int, MIN_YEAR, MAX_YEAR),
    "min_mileage": ("minMileage", int, 0, None),
    "max_mileage": ("maxMileage", int, 0, None),
}

TEXT_FACETS = {
    "brand": "brand",
    "model": "model",
}

SORT_KEY = "sortBy"

QUERY_KEYS = (
    "brand",
    "model",
    "minPrice",
    "maxPrice",
    "minYear",
    "maxYear",
    "minMileage",
    "maxMileage",
    "bodyType",
    "fuelType",
    "transmission",
    "color",
    "sortBy",
)

# Valores que el slider envía cuando está en su extremo
_UNCONSTRAINED_BOUNDS = {
    "min_price": 0,
    "max_price": PRICE_SLIDER_MAX,
    "min_mileage": 0,
    "max_mileage": MILEAGE_SLIDER_MAX,
}


class FilterSelection(BaseModel):
    """
    Selección de filtros inmutable.

    Al construirla se normaliza: textos vacíos, conjuntos vacíos y límites
    iguales al extremo del slider pasan a None (sin restricción).
    """

    model_config = ConfigDict(frozen=True)

    brand: Optional[str] = Field(None, description="Marca, coincidencia exacta sin mayúsculas")
    model: Optional[str] = Field(None, description="Modelo, coincidencia parcial sin mayúsculas")

    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_year: Optional[int] = Field(None, ge=MIN_YEAR, le=MAX_YEAR)
    max_year: Optional[int] = Field(None, ge=MIN_YEAR, le=MAX_YEAR)
    min_mileage: Optional[int] = Field(None, ge=0)
    max_mileage: Optional[int] = Field(None, ge=0)

    body_types: Optional[Tuple[str, ...]] = None
    fuel_types: Optional[Tuple[str, ...]] = None
    transmissions: Optional[Tuple[str, ...]] = None
    colors: Optional[Tuple[str, ...]] = None

    sort_by: SortBy = SortBy.NEWEST

    @field_validator("brand", "model", mode="before")
    @classmethod
    def _blank_text_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("body_types", "fuel_types", "transmissions", "colors", mode="before")
    @classmethod
    def _normalize_set(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        elif isinstance(value, (set, frozenset)):
            value = sorted(value)
        cleaned = []
        for item in value:
            item = str(item).strip()
            if item and item not in cleaned:
                cleaned.append(item)
        return tuple(cleaned) or None

    @field_validator("min_price", "max_price", "min_mileage", "max_mileage", mode="after")
    @classmethod
    def _slider_edge_is_absent(cls, value: Any, info) -> Any:
        if value is not None and value == _UNCONSTRAINED_BOUNDS[info.field_name]:
            return None
        return value

    @field_validator("sort_by", mode="before")
    @classmethod
    def _default_sort(cls, value: Any) -> Any:
        return SortBy.NEWEST if value is None else value

    @property
    def is_empty(self) -> bool:
        return count_active_filters(self) == 0


def _format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_number(raw: Any, kind: Type) -> Optional[Union[int, float]]:
    """Convierte un valor de la URL a número; None si no es numérico"""
    if isinstance(raw, bool):
        return None
    # float() admite "1_000", que en la URL no es un número
    if isinstance(raw, str) and "_" in raw:
        return None
    try:
        number = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    if kind is int:
        if not number.is_integer():
            return None
        return int(number)
    return number


def serialize(selection: FilterSelection) -> Dict[str, str]:
    """
    Convierte la selección en un mapa plano clave -> string para la URL.

    Se omiten los valores por defecto: facetas ausentes y orden "newest".
    """
    query: Dict[str, str] = {}

    for field, key in TEXT_FACETS.items():
        value = getattr(selection, field)
        if value:
            query[key] = value

    for field, (key, _kind, _low, _high) in NUMERIC_FACETS.items():
        value = getattr(selection, field)
        if value is not None:
            query[key] = _format_number(value)

    for field, key in SET_FACETS.items():
        values = getattr(selection, field)
        if values:
            query[key] = ",".join(values)

    if selection.sort_by is not SortBy.NEWEST:
        query[SORT_KEY] = selection.sort_by.value

    # Orden estable de claves, el mismo que en la URL del buscador
    return {key: query[key] for key in QUERY_KEYS if key in query}


def deserialize(query: Mapping[str, Any]) -> FilterSelection:
    """
    Reconstruye la selección desde un mapa plano de la URL.

    Nunca falla: números mal formados o fuera de rango y criterios de orden
    desconocidos se tratan como ausentes.
    """
    data: Dict[str, Any] = {}

    for field, key in TEXT_FACETS.items():
        raw = query.get(key)
        if isinstance(raw, str):
            data[field] = raw

    for field, (key, kind, low, high) in NUMERIC_FACETS.items():
        raw = query.get(key)
        if raw is None or raw == "":
            continue
        number = _parse_number(raw, kind)
        if number is None or number < low or (high is not None and number > high):
            logger.debug("Ignorando valor no válido para %s: %r", key, raw)
            continue
        data[field] = number

    for field, key in SET_FACETS.items():
        raw = query.get(key)
        if isinstance(raw, str) and raw:
            data[field] = raw.split(",")

    raw_sort = query.get(SORT_KEY)
    try:
        data["sort_by"] = SortBy(raw_sort)
    except ValueError:
        if raw_sort:
            logger.debug("Criterio de orden desconocido %r, usando newest", raw_sort)
        data["sort_by"] = SortBy.NEWEST

    return FilterSelection(**data)


def count_active_filters(selection: FilterSelection) -> int:
    """Número de facetas activas (el orden no cuenta como filtro)"""
    fields = list(TEXT_FACETS) + list(NUMERIC_FACETS) + list(SET_FACETS)
    return sum(1 for field in fields if getattr(selection, field) is not None)


def replace(selection: FilterSelection, **changes: Any) -> FilterSelection:
    """Devuelve una nueva selección con los cambios aplicados y normalizados"""
    data = selection.model_dump()
    data.update(changes)
    return FilterSelection(**data)


def toggle_facet_value(selection: FilterSelection, facet: str, value: str) -> FilterSelection:
    """Añade o quita un valor de una faceta múltiple (chip de carrocería, combustible...)"""
    if facet not in SET_FACETS:
        raise ValueError(f"Faceta múltiple desconocida: {facet}")
    current = list(getattr(selection, facet) or ())
    if value in current:
        current.remove(value)
    else:
        current.append(value)
    return replace(selection, **{facet: current or None})


def with_price_range(
    selection: FilterSelection, min_price: Optional[float], max_price: Optional[float]
) -> FilterSelection:
    return replace(selection, min_price=min_price, max_price=max_price)


def with_mileage_range(
    selection: FilterSelection, min_mileage: Optional[int], max_mileage: Optional[int]
) -> FilterSelection:
    return replace(selection, min_mileage=min_mileage, max_mileage=max_mileage)


def parse_csv_values(raw: Optional[str]) -> Optional[Iterable[str]]:
    """Parsea valores separados por comas (entrada de CLI o URL)"""
    if not raw:
        return None
    values = [v.strip() for v in raw.split(",") if v.strip()]
    return values or None


def reset() -> FilterSelection:
    return FilterSelection()


__all__ = [
    "FilterSelection",
    "SortBy",
    "SORT_LABELS",
    "QUERY_KEYS",
    "SET_FACETS",
    "NUMERIC_FACETS",
    "PRICE_SLIDER_MAX",
    "MILEAGE_SLIDER_MAX",
    "serialize",
    "deserialize",
    "count_active_filters",
    "toggle_facet_value",
    "with_price_range",
    "with_mileage_range",
    "parse_csv_values",
    "replace",
    "reset",
]
