"""
Pruebas de exportación del inventario a CSV y Excel
"""
import pandas as pd
import pytest
from openpyxl import load_workbook

from vip_inventory.exporters import CSVExporter, ExcelExporter, listings_to_dataframe
from vip_inventory.models import VehicleListing


@pytest.fixture
def listings():
    return [
        VehicleListing(
            slug="bentley-continental-gt-2021", brand="Bentley", model="Continental GT", year=2021,
            price=185000, mileage=14000, body_type="coupe", fuel_type="petrol",
        ),
        VehicleListing(
            slug="rolls-royce-cullinan-2022", brand="Rolls-Royce", model="Cullinan", year=2022,
            price=389000, original_price=410000, body_type="suv",
        ),
    ]


def test_dataframe(listings):
    df = listings_to_dataframe(listings)
    assert list(df["slug"]) == ["bentley-continental-gt-2021", "rolls-royce-cullinan-2022"]
    assert df.loc[0, "monthly_from"] > 0
    assert list(df["price_reduced"]) == [False, True]
    assert "monthly_from" not in listings_to_dataframe(listings, include_financing=False).columns


def test_exportar_csv(listings, tmp_path):
    filepath = CSVExporter(output_dir=str(tmp_path)).export_listings(listings, "inventario")
    assert filepath.endswith("inventario.csv")

    df = pd.read_csv(filepath, encoding="utf-8-sig")
    assert len(df) == 2
    assert list(df["brand"]) == ["Bentley", "Rolls-Royce"]


def test_exportar_excel(listings, tmp_path):
    filepath = ExcelExporter(output_dir=str(tmp_path)).export_listings(listings)
    assert filepath.endswith(".xlsx")

    workbook = load_workbook(filepath)
    sheet = workbook["Inventory"]
    assert sheet.freeze_panes == "A2"
    assert sheet.cell(row=1, column=1).value == "id"
    assert sheet.max_row == 3


@pytest.mark.parametrize("exporter", [CSVExporter, ExcelExporter])
def test_exportar_lista_vacia(exporter, tmp_path):
    with pytest.raises(ValueError):
        exporter(output_dir=str(tmp_path)).export_listings([])
