"""
Pruebas de las URLs compartibles del buscador y del formato de precios/kilometraje
"""
from datetime import datetime, timezone

import pytest

from vip_inventory.filters import FilterSelection, SortBy
from vip_inventory.models import DriveType, VehicleListing
from vip_inventory.utils import (
    build_shop_url,
    compare_listings,
    format_listing_price,
    format_mileage,
    format_price,
    parse_shop_url,
)


def test_url_sin_filtros():
    assert build_shop_url(FilterSelection()) == "/shop"
    assert build_shop_url(FilterSelection(), base_url="https://vip.ch/") == "https://vip.ch/shop"


def test_url_con_filtros():
    selection = FilterSelection(
        brand="Aston Martin",
        max_price=300000,
        body_types=["suv", "coupe"],
        sort_by=SortBy.PRICE_LOW_TO_HIGH,
    )
    url = build_shop_url(selection, base_url="https://vip.ch")
    assert url == "https://vip.ch/shop?brand=Aston+Martin&maxPrice=300000&bodyType=suv,coupe&sortBy=price_asc"


def test_url_ida_y_vuelta():
    selection = FilterSelection(
        model="GT 3",
        min_year=2015,
        fuel_types=["petrol", "hybrid"],
        colors=["British Racing Green"],
        sort_by=SortBy.YEAR_NEW_TO_OLD,
    )
    assert parse_shop_url(build_shop_url(selection, "https://vip.ch")) == selection


def test_parse_url_con_hash_router():
    selection = parse_shop_url("https://vip.ch/#/shop?brand=Ferrari&minPrice=150000")
    assert selection.brand == "Ferrari"
    assert selection.min_price == 150000


def test_parse_url_con_valores_basura():
    selection = parse_shop_url("/shop?minPrice=abc&maxYear=&sortBy=random&brand=BMW&brand=Audi")
    assert selection.min_price is None
    assert selection.max_year is None
    assert selection.sort_by is SortBy.NEWEST
    assert selection.brand == "Audi", "Si una clave se repite gana la última"


@pytest.mark.parametrize(
    "amount, currency, expected",
    [
        (125000, "CHF", "CHF 125'000"),
        (1250000.4, "CHF", "CHF 1'250'000"),
        (999, "EUR", "EUR 999"),
        (0, "CHF", "CHF 0"),
        (None, "CHF", "Price on request"),
    ],
)
def test_format_price(amount, currency, expected):
    assert format_price(amount, currency) == expected


@pytest.mark.parametrize(
    "mileage, expected",
    [(45000, "45k km"), (12400, "12k km"), (0, "New"), (None, "New")],
)
def test_format_mileage(mileage, expected):
    assert format_mileage(mileage) == expected


def _listing(**overrides):
    data = dict(
        slug="x",
        brand="Porsche",
        model="911",
        year=2022,
        price=200000,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return VehicleListing(**data)


def test_comparativa():
    cars = [
        _listing(
            slug="porsche-911-turbo-s-2022", model="911 Turbo S", mileage=9000, fuel_type="petrol",
            transmission="automatic", power_hp=650, body_type="coupe", drive_type=DriveType.AWD, engine_cc=3745,
            exterior_color="GT Silver",
        ),
        _listing(slug="porsche-taycan-2023", model="Taycan", year=2023, price=150000, fuel_type="electric"),
    ]

    rows = compare_listings(cars)
    table = {row[0]: row[1:] for row in rows}

    assert table["Year"] == ["2022", "2023"]
    assert table["Mileage"] == ["9k km", "New"]
    assert table["Price"] == ["CHF 200'000", "CHF 150'000"]
    assert table["Fuel Type"] == ["Petrol", "Electric"]
    assert table["Power"] == ["650 HP", "N/A"]
    assert table["Drive Type"] == ["AWD", "N/A"]
    assert table["Engine"] == ["3.7L", "N/A"]
    assert table["Exterior Color"] == ["GT Silver", "N/A"]


def test_comparativa_limita_vehiculos():
    cars = [_listing(slug=f"car-{i}", year=2020 + i) for i in range(5)]
    rows = compare_listings(cars, max_vehicles=3)
    assert all(len(row) == 4 for row in rows)
    assert compare_listings([]) == []


def test_precio_rebajado():
    rebajado = _listing(slug="porsche-911-s-2022", price=180000, original_price=199000)
    assert rebajado.is_price_reduced
    assert format_listing_price(rebajado) == "CHF 180'000 (was CHF 199'000)"

    # Un precio anterior igual o menor no cuenta como rebaja
    sin_rebaja = _listing(slug="porsche-911-2022", original_price=200000)
    assert not sin_rebaja.is_price_reduced
    assert format_listing_price(sin_rebaja) == "CHF 200'000"

    table = {row[0]: row[1:] for row in compare_listings([rebajado, sin_rebaja])}
    assert table["Price"] == ["CHF 180'000 (was CHF 199'000)", "CHF 200'000"]
