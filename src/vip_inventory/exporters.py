"""
Exportadores para guardar resultados de búsqueda del inventario en Excel o CSV
"""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import get_settings
from .models import VehicleListing
from .utils.financing_calculator import financing_calculator

logger = logging.getLogger(__name__)


def _default_filename(prefix: str, extension: str) -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{timestamp}.{extension}"


def listings_to_dataframe(listings: List[VehicleListing], include_financing: bool = True) -> pd.DataFrame:
    """Convierte anuncios a DataFrame con una fila por coche"""
    rows = []
    for listing in listings:
        row = {
            # Identificación
            "id": listing.id,
            "slug": listing.slug,
            "title": listing.display_title,
            "status": listing.status.value,
            "condition": listing.condition.value,
            "created_at": listing.created_at.replace(tzinfo=None),

            # Vehículo
            "brand": listing.brand,
            "model": listing.model,
            "variant": listing.variant,
            "year": listing.year,
            "mileage_km": listing.mileage,
            "body_type": listing.body_type,
            "fuel_type": listing.fuel_type,
            "transmission": listing.transmission,
            "drive_type": listing.drive_type.value if listing.drive_type else None,
            "exterior_color": listing.exterior_color,
            "interior_color": listing.interior_color,
            "engine_cc": listing.engine_cc,
            "power_hp": listing.power_hp,

            # Precio
            "price": listing.price,
            "original_price": listing.original_price,
            "price_reduced": listing.is_price_reduced,
            "currency": listing.currency,
            "price_type": listing.price_type.value,
        }

        if include_financing:
            quote = financing_calculator.quick_quote(listing.price)
            row["monthly_from"] = round(quote.monthly_payment, 2)

        rows.append(row)

    return pd.DataFrame(rows)


class ExcelExporter:
    """
    Exportador para guardar resultados de búsqueda en formato Excel
    """

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or get_settings().exports_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_listings(
        self,
        listings: List[VehicleListing],
        filename: Optional[str] = None,
        include_financing: bool = True,
    ) -> str:
        """
        Exporta una lista de anuncios a Excel

        Args:
            listings: Anuncios a exportar
            filename: Nombre del archivo (opcional, se genera automáticamente si no se proporciona)
            include_financing: Si incluir la cuota mensual orientativa

        Returns:
            Ruta del archivo generado
        """
        if not listings:
            raise ValueError("No hay anuncios para exportar")

        filename = filename or _default_filename("inventario", "xlsx")
        if not filename.endswith(".xlsx"):
            filename += ".xlsx"

        filepath = self.output_dir / filename
        df = listings_to_dataframe(listings, include_financing)

        with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Inventory", index=False)
            self._format_worksheet(writer.sheets["Inventory"], df)

        logger.info(f"Exportados {len(listings)} anuncios a {filepath}")
        return str(filepath)

    def _format_worksheet(self, worksheet, df: pd.DataFrame):
        """Aplica formato a la hoja de Excel"""
        from openpyxl.styles import Alignment, Font, PatternFill
        from openpyxl.utils import get_column_letter

        header_font = Font(bold=True, color="000000")
        header_fill = PatternFill(start_color="F5C518", end_color="F5C518", fill_type="solid")

        for col_num, _ in enumerate(df.columns, 1):
            cell = worksheet.cell(row=1, column=col_num)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        # Ajustar ancho de columnas
        for column in worksheet.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max(len(str(cell.value)) for cell in column if cell.value is not None)
            worksheet.column_dimensions[column_letter].width = min(max_length + 2, 50)

        worksheet.freeze_panes = "A2"


class CSVExporter:
    """
    Exportador simple para CSV
    """

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = Path(output_dir or get_settings().exports_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_listings(
        self,
        listings: List[VehicleListing],
        filename: Optional[str] = None,
        include_financing: bool = True,
    ) -> str:
        """Exporta anuncios a CSV"""
        if not listings:
            raise ValueError("No hay anuncios para exportar")

        filename = filename or _default_filename("inventario", "csv")
        if not filename.endswith(".csv"):
            filename += ".csv"

        filepath = self.output_dir / filename
        df = listings_to_dataframe(listings, include_financing)
        df.to_csv(filepath, index=False, encoding="utf-8-sig")

        logger.info(f"Exportados {len(listings)} anuncios a {filepath}")
        return str(filepath)


__all__ = ["ExcelExporter", "CSVExporter", "listings_to_dataframe"]
