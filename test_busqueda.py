"""
Pruebas del pipeline de búsqueda: cada faceta por separado, combinadas y ordenación

Catálogo de prueba (creados de más antiguo a más reciente):
- Porsche 911 Carrera S 2021, coupe, petrol, automatic, Black, 12'000 km
- Porsche Cayenne Turbo 2019, suv, hybrid, automatic, White, 45'000 km
- Ferrari 296 GTB 2023, coupe, hybrid, automatic, Red, 3'000 km
- Aston Martin DBX 2022, suv, petrol, automatic, Black, 20'000 km
- Mercedes-Benz 280 SL 1969, convertible, petrol, manual, Silver, sin km (reservado)
- Tesla Model S 2021, sedan, electric, automatic, White, 30'000 km
"""
from datetime import datetime, timedelta, timezone

import pytest

from vip_inventory.filters import FilterSelection, SortBy
from vip_inventory.models import ListingStatus, VehicleListing, slugify_listing
from vip_inventory.search import apply_filters, matches, sort_listings

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _car(brand, model, year, price, mileage, body, fuel, transmission, color, age_days, **extra):
    return VehicleListing(
        id=extra.pop("id", slugify_listing(brand, model, year)),
        slug=slugify_listing(brand, model, year),
        brand=brand,
        model=model,
        year=year,
        price=price,
        mileage=mileage,
        body_type=body,
        fuel_type=fuel,
        transmission=transmission,
        exterior_color=color,
        created_at=BASE_TIME + timedelta(days=age_days),
        **extra,
    )


@pytest.fixture
def catalogo():
    return [
        _car("Porsche", "911 Carrera S", 2021, 165000, 12000, "coupe", "petrol", "automatic", "Black", 1),
        _car("Porsche", "Cayenne Turbo", 2019, 98000, 45000, "suv", "hybrid", "automatic", "White", 2),
        _car("Ferrari", "296 GTB", 2023, 310000, 3000, "coupe", "hybrid", "automatic", "Red", 3),
        _car("Aston Martin", "DBX", 2022, 189000, 20000, "suv", "petrol", "automatic", "Black", 4),
        _car(
            "Mercedes-Benz", "280 SL", 1969, 145000, None, "convertible", "petrol", "manual", "Silver", 5,
            status=ListingStatus.RESERVED,
        ),
        _car("Tesla", "Model S", 2021, 79000, 30000, "sedan", "electric", "automatic", "White", 6),
    ]


def _brands_models(listings):
    return [(l.brand, l.model) for l in listings]


def test_seleccion_vacia_devuelve_todo_en_orden_newest(catalogo):
    result = apply_filters(FilterSelection(), catalogo)
    assert len(result) == len(catalogo)
    assert [l.model for l in result] == [
        "Model S", "280 SL", "DBX", "296 GTB", "Cayenne Turbo", "911 Carrera S"
    ]


def test_marca_exacta_sin_mayusculas(catalogo):
    result = apply_filters(FilterSelection(brand="porsche"), catalogo)
    assert {l.model for l in result} == {"911 Carrera S", "Cayenne Turbo"}

    # Exacta: una parte del nombre no basta
    assert apply_filters(FilterSelection(brand="Aston"), catalogo) == []


def test_modelo_por_subcadena(catalogo):
    result = apply_filters(FilterSelection(model="carrera"), catalogo)
    assert _brands_models(result) == [("Porsche", "911 Carrera S")]

    result = apply_filters(FilterSelection(model="s"), catalogo)
    assert {l.model for l in result} == {"911 Carrera S", "280 SL", "Model S"}


def test_rango_de_precio_inclusivo(catalogo):
    result = apply_filters(FilterSelection(min_price=98000, max_price=165000), catalogo)
    assert {l.price for l in result} == {98000, 145000, 165000}


def test_rango_de_anios(catalogo):
    result = apply_filters(FilterSelection(min_year=2021, max_year=2022), catalogo)
    assert {l.model for l in result} == {"911 Carrera S", "DBX", "Model S"}

    result = apply_filters(FilterSelection(max_year=1970), catalogo)
    assert _brands_models(result) == [("Mercedes-Benz", "280 SL")]


def test_rango_de_kilometraje_excluye_sin_dato(catalogo):
    result = apply_filters(FilterSelection(max_mileage=20000), catalogo)
    assert {l.model for l in result} == {"911 Carrera S", "296 GTB", "DBX"}
    assert all(l.mileage is not None for l in result), "Sin kilometraje no se puede comprobar el rango"


@pytest.mark.parametrize(
    "field, values, expected",
    [
        ("body_types", ["suv"], {"Cayenne Turbo", "DBX"}),
        ("body_types", ["coupe", "convertible"], {"911 Carrera S", "296 GTB", "280 SL"}),
        ("fuel_types", ["electric", "hybrid"], {"Model S", "296 GTB", "Cayenne Turbo"}),
        ("transmissions", ["manual"], {"280 SL"}),
        ("colors", ["White"], {"Cayenne Turbo", "Model S"}),
    ],
)
def test_facetas_multiples(catalogo, field, values, expected):
    result = apply_filters(FilterSelection(**{field: values}), catalogo)
    assert {l.model for l in result} == expected


def test_facetas_combinadas_con_and(catalogo):
    selection = FilterSelection(
        body_types=["suv", "coupe"],
        fuel_types=["petrol"],
        colors=["Black"],
        max_price=170000,
    )
    result = apply_filters(selection, catalogo)
    assert _brands_models(result) == [("Porsche", "911 Carrera S")]


def test_resultado_es_exactamente_el_subconjunto_que_cumple(catalogo):
    """Sin falsos positivos ni negativos respecto al predicado"""
    selection = FilterSelection(min_year=2020, fuel_types=["petrol", "hybrid"], min_mileage=1000)
    result = apply_filters(selection, catalogo)
    expected = [l for l in catalogo if matches(l, selection)]
    assert sorted(l.id for l in result) == sorted(l.id for l in expected)
    for listing in catalogo:
        ok = (
            listing.year >= 2020
            and listing.fuel_type in ("petrol", "hybrid")
            and listing.mileage is not None
            and listing.mileage >= 1000
        )
        assert (listing in result) == ok, f"{listing.slug} mal clasificado"


def test_marca_inexistente_devuelve_vacio(catalogo):
    assert apply_filters(FilterSelection(brand="Nonexistent"), catalogo) == []


def test_coleccion_vacia():
    assert apply_filters(FilterSelection(brand="Porsche"), []) == []


def test_restriccion_de_estado(catalogo):
    result = apply_filters(FilterSelection(), catalogo, status=ListingStatus.AVAILABLE)
    assert len(result) == 5
    assert all(l.status is ListingStatus.AVAILABLE for l in result)


@pytest.mark.parametrize(
    "sort_by, attribute, descending",
    [
        (SortBy.PRICE_LOW_TO_HIGH, "price", False),
        (SortBy.PRICE_HIGH_TO_LOW, "price", True),
        (SortBy.YEAR_OLD_TO_NEW, "year", False),
        (SortBy.YEAR_NEW_TO_OLD, "year", True),
        (SortBy.MILEAGE_LOW_TO_HIGH, "mileage", False),
        (SortBy.MILEAGE_HIGH_TO_LOW, "mileage", True),
    ],
)
def test_ordenacion_monotona(catalogo, sort_by, attribute, descending):
    result = apply_filters(FilterSelection(sort_by=sort_by), catalogo)
    values = [getattr(l, attribute) for l in result if getattr(l, attribute) is not None]
    assert values == sorted(values, reverse=descending)
    # Los anuncios sin valor van al final
    assert result[-1].mileage is None or attribute != "mileage"


def test_desempate_por_fecha_y_despues_por_id(catalogo):
    """Mismo año: el más reciente primero; misma fecha: id ascendente"""
    result = apply_filters(FilterSelection(sort_by=SortBy.YEAR_NEW_TO_OLD), catalogo)
    years_2021 = [l.model for l in result if l.year == 2021]
    assert years_2021 == ["Model S", "911 Carrera S"]

    twins = [
        _car("BMW", "M3", 2020, 70000, 10000, "sedan", "petrol", "manual", "Blue", 0, id="b"),
        _car("BMW", "M3", 2020, 70000, 10000, "sedan", "petrol", "manual", "Blue", 0, id="a"),
        _car("BMW", "M3", 2020, 70000, 10000, "sedan", "petrol", "manual", "Blue", 0, id="c"),
    ]
    for sort_by in SortBy:
        assert [l.id for l in sort_listings(twins, sort_by)] == ["a", "b", "c"]


def test_ordenacion_no_modifica_la_entrada(catalogo):
    original = list(catalogo)
    apply_filters(FilterSelection(sort_by=SortBy.PRICE_LOW_TO_HIGH), catalogo)
    assert catalogo == original


def test_fechas_sin_zona_horaria_se_toman_como_utc(catalogo):
    """Un anuncio importado con fecha sin zona no rompe la ordenación"""
    importado = VehicleListing(
        slug="bmw-m5-2018", brand="BMW", model="M5", year=2018, price=59000, mileage=70000,
        created_at="2024-01-10T10:00:00",
    )
    assert importado.created_at.tzinfo is not None

    reciente = VehicleListing(slug="audi-rs6-2020", brand="Audi", model="RS6", year=2020, price=99000)
    mezcla = catalogo + [importado, reciente]
    for sort_by in SortBy:
        result = apply_filters(FilterSelection(sort_by=sort_by), mezcla)
        assert len(result) == len(mezcla)

    result = apply_filters(FilterSelection(), mezcla)
    assert result[0].slug == "audi-rs6-2020", "Creado ahora: el más reciente"
    assert result[1].slug == "bmw-m5-2018"
