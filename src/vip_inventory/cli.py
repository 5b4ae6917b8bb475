"""
CLI del inventario: búsqueda con filtros, financiación, administración, campañas QR y leads
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import orjson
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .campaigns import QRCodeTracker, qr_image_url
from .config import get_settings
from .data import BODY_TYPES, CAR_BRANDS, DRIVE_TYPES, EXTERIOR_COLORS, FUEL_TYPES, TRANSMISSION_TYPES
from .exporters import CSVExporter, ExcelExporter
from .filters import SORT_LABELS, FilterSelection, SortBy, count_active_filters, parse_csv_values
from .inventory import InventoryError, InventoryStore
from .models import InquiryType, LeadStatus, ListingStatus, VehicleListing
from .utils import (
    FinancingCalculator,
    FinancingError,
    build_shop_url,
    compare_listings,
    format_listing_price,
    format_mileage,
    format_price,
    parse_shop_url,
)

console = Console(force_terminal=True, legacy_windows=False)

logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Inventario de VIP Luxury Cars: búsqueda, financiación, administración y QR")

INVENTORY_OPTION = typer.Option(None, "--inventory", help="Ruta del fichero JSON del inventario")


def _open_store(inventory: Optional[str]) -> InventoryStore:
    return InventoryStore(inventory)


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


def _parse_sort_by(sort_str: Optional[str]) -> SortBy:
    """Parsea criterio de ordenación; desconocido -> newest"""
    if not sort_str:
        return SortBy.NEWEST
    try:
        return SortBy(sort_str.lower())
    except ValueError:
        console.print(f"[yellow]Advertencia: criterio de orden desconocido '{sort_str}', usando newest[/yellow]")
        return SortBy.NEWEST


def _listings_table(listings: List[VehicleListing], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Slug", style="cyan")
    table.add_column("Vehículo", style="white")
    table.add_column("Año", justify="right")
    table.add_column("Km", justify="right")
    table.add_column("Precio", style="green", justify="right")
    table.add_column("Estado", style="magenta")
    for listing in listings:
        table.add_row(
            listing.slug,
            listing.display_title,
            str(listing.year),
            format_mileage(listing.mileage),
            format_listing_price(listing),
            listing.status.value,
        )
    return table


@app.command("buscar")
def buscar(
    brand: Optional[str] = typer.Option(None, help="Marca (ej: Porsche)"),
    model: Optional[str] = typer.Option(None, help="Modelo o parte del modelo (ej: 911)"),
    min_price: Optional[float] = typer.Option(None, help="Precio mínimo"),
    max_price: Optional[float] = typer.Option(None, help="Precio máximo"),
    min_year: Optional[int] = typer.Option(None, help="Año mínimo"),
    max_year: Optional[int] = typer.Option(None, help="Año máximo"),
    min_mileage: Optional[int] = typer.Option(None, help="Kilometraje mínimo"),
    max_mileage: Optional[int] = typer.Option(None, help="Kilometraje máximo"),
    body_types: Optional[str] = typer.Option(None, help="Carrocerías separadas por comas (suv,coupe)"),
    fuel_types: Optional[str] = typer.Option(None, help="Combustibles separados por comas (petrol,electric)"),
    transmissions: Optional[str] = typer.Option(None, help="Transmisiones separadas por comas (automatic,manual)"),
    colors: Optional[str] = typer.Option(None, help="Colores exteriores separados por comas (Black,White)"),
    sort_by: Optional[str] = typer.Option(None, help="Orden (newest,price_asc,price_desc,year_desc,year_asc,mileage_asc,mileage_desc)"),
    url: Optional[str] = typer.Option(None, help="URL compartida del buscador; sustituye al resto de filtros"),
    all_statuses: bool = typer.Option(False, help="Incluir reservados, vendidos y próximos"),
    as_json: bool = typer.Option(False, "--json", help="Mostrar resultados en JSON"),
    export_format: Optional[str] = typer.Option(None, help="Formato de exportación (excel, csv)"),
    export_filename: Optional[str] = typer.Option(None, help="Nombre del archivo de exportación"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Busca en el inventario con filtros facetados"""
    try:
        if url:
            selection = parse_shop_url(url)
        else:
            selection = FilterSelection(
                brand=brand,
                model=model,
                min_price=min_price,
                max_price=max_price,
                min_year=min_year,
                max_year=max_year,
                min_mileage=min_mileage,
                max_mileage=max_mileage,
                body_types=parse_csv_values(body_types),
                fuel_types=parse_csv_values(fuel_types),
                transmissions=parse_csv_values(transmissions),
                colors=parse_csv_values(colors),
                sort_by=_parse_sort_by(sort_by),
            )
    except ValidationError as e:
        _fail(f"Filtros no válidos: {e}")

    store = _open_store(inventory)
    status = None if all_statuses else ListingStatus.AVAILABLE
    results = store.search(selection, status=status)

    if as_json:
        print(orjson.dumps([l.model_dump(mode="json") for l in results], option=orjson.OPT_INDENT_2).decode("utf-8"))
        return

    console.print(f"[dim]{count_active_filters(selection)} filtros activos · {SORT_LABELS[selection.sort_by]}[/dim]")
    if not results:
        console.print("[yellow]No hay vehículos que coincidan con los filtros[/yellow]")
    else:
        suffix = "" if len(results) == 1 else "s"
        console.print(_listings_table(results, f"{len(results)} vehículo{suffix} encontrado{suffix}"))

    console.print(f"[blue]URL: {build_shop_url(selection, get_settings().public_base_url)}[/blue]")

    if export_format and results:
        if export_format.lower() == "excel":
            filepath = ExcelExporter().export_listings(results, export_filename)
        elif export_format.lower() == "csv":
            filepath = CSVExporter().export_listings(results, export_filename)
        else:
            _fail(f"Formato de exportación no soportado: {export_format}")
        console.print(f"[green]Exportado a {filepath}[/green]")


@app.command("financiar")
def financiar(
    price: Optional[float] = typer.Option(None, help="Precio del vehículo"),
    slug: Optional[str] = typer.Option(None, help="Slug del coche del inventario"),
    down_payment: Optional[float] = typer.Option(None, help="Entrada (por defecto 20% del precio)"),
    term: Optional[int] = typer.Option(None, help="Plazo en meses (por defecto 48)"),
    rate: Optional[float] = typer.Option(None, help="Interés nominal anual en % (por defecto 3.9)"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Calcula la cuota mensual de financiación"""
    settings = get_settings()
    currency = settings.default_currency
    try:
        if slug:
            listing = _open_store(inventory).get_by_slug(slug)
            price = listing.price
            currency = listing.currency
            console.print(f"[bold]{listing.display_title}[/bold] ({listing.year})")
        if price is None:
            _fail("Indica --price o --slug")

        calculator = FinancingCalculator(
            down_payment_ratio=settings.default_down_payment_ratio,
            term_months=settings.default_term_months,
            interest_rate=settings.default_interest_rate,
        )
        quote = calculator.calculate(price, down_payment, term, rate)
    except (FinancingError, InventoryError) as e:
        _fail(str(e))

    table = Table(title="Simulación de financiación")
    table.add_column("Concepto", style="cyan")
    table.add_column("Valor", style="magenta", justify="right")
    table.add_row("Precio", format_price(quote.price, currency))
    table.add_row("Entrada", format_price(quote.down_payment, currency))
    table.add_row("Importe financiado", format_price(quote.loan_amount, currency))
    table.add_row("Plazo", f"{quote.term_months} meses")
    table.add_row("Interés", f"{quote.annual_rate_percent:.1f}%")
    table.add_row("Intereses totales", format_price(quote.total_interest, currency))
    table.add_row("Cuota mensual", f"[bold]{format_price(quote.monthly_payment, currency)}[/bold]")
    table.add_row("Coste total", format_price(quote.total_cost, currency))
    console.print(table)
    console.print("[dim]* Estimación orientativa, sujeta a aprobación de crédito[/dim]")


@app.command("alta")
def alta(
    brand: Optional[str] = typer.Option(None, help="Marca"),
    model: Optional[str] = typer.Option(None, help="Modelo"),
    year: Optional[int] = typer.Option(None, help="Año"),
    price: Optional[float] = typer.Option(None, help="Precio"),
    original_price: Optional[float] = typer.Option(None, help="Precio anterior (si el coche está rebajado)"),
    currency: Optional[str] = typer.Option(None, help="Moneda (por defecto la de la configuración)"),
    mileage: Optional[int] = typer.Option(None, help="Kilometraje"),
    body_type: Optional[str] = typer.Option(None, help="Carrocería"),
    fuel_type: Optional[str] = typer.Option(None, help="Combustible"),
    transmission: Optional[str] = typer.Option(None, help="Transmisión"),
    color: Optional[str] = typer.Option(None, help="Color exterior"),
    slug: Optional[str] = typer.Option(None, help="Slug (por defecto marca-modelo-año)"),
    from_json: Optional[Path] = typer.Option(None, help="Fichero JSON con el anuncio completo"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Da de alta un coche en el inventario"""
    if from_json:
        data = orjson.loads(from_json.read_bytes())
    else:
        data = {
            "brand": brand,
            "model": model,
            "year": year,
            "price": price,
            "original_price": original_price,
            "currency": currency or get_settings().default_currency,
            "mileage": mileage,
            "body_type": body_type,
            "fuel_type": fuel_type,
            "transmission": transmission,
            "exterior_color": color,
            "slug": slug,
        }
    try:
        listing = _open_store(inventory).create(data)
    except (ValidationError, InventoryError) as e:
        _fail(f"No se pudo dar de alta: {e}")
    console.print(f"[green]Alta correcta: {listing.slug} ({listing.id})[/green]")


@app.command("estado")
def estado(
    slug: str = typer.Argument(..., help="Slug del coche"),
    status: Optional[ListingStatus] = typer.Option(None, help="Nuevo estado"),
    price: Optional[float] = typer.Option(None, help="Nuevo precio"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Cambia el estado o el precio de un coche"""
    changes = {}
    if status is not None:
        changes["status"] = status
    if price is not None:
        changes["price"] = price
    if not changes:
        _fail("Indica --status y/o --price")
    try:
        store = _open_store(inventory)
        listing = store.update(store.get_by_slug(slug).id, **changes)
    except (ValidationError, InventoryError) as e:
        _fail(str(e))
    console.print(
        f"[green]{listing.slug}: {listing.status.value}, {format_price(listing.price, listing.currency)}[/green]"
    )


@app.command("baja")
def baja(
    slug: str = typer.Argument(..., help="Slug del coche"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Elimina un coche del inventario"""
    try:
        store = _open_store(inventory)
        listing = store.delete(store.get_by_slug(slug).id)
    except InventoryError as e:
        _fail(str(e))
    console.print(f"[green]Eliminado {listing.slug}[/green]")


@app.command("comparar")
def comparar(
    slugs: List[str] = typer.Argument(..., help="Slugs de los coches a comparar (máximo 3)"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Compara coches lado a lado"""
    max_vehicles = get_settings().max_compared_vehicles
    if len(slugs) > max_vehicles:
        console.print(f"[yellow]Solo se comparan los primeros {max_vehicles} coches[/yellow]")
    try:
        store = _open_store(inventory)
        listings = [store.get_by_slug(slug) for slug in slugs[:max_vehicles]]
    except InventoryError as e:
        _fail(str(e))

    table = Table(title="Comparación")
    table.add_column("", style="cyan")
    for listing in listings:
        table.add_column(listing.display_title, style="white")
    for row in compare_listings(listings, max_vehicles):
        table.add_row(*row)
    console.print(table)


@app.command("qr-crear")
def qr_crear(
    label: str = typer.Argument(..., help="Nombre de la campaña"),
    slug: Optional[str] = typer.Option(None, help="Coche al que apunta el QR"),
    target_url: Optional[str] = typer.Option(None, help="URL o ruta de destino personalizada"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Crea un código QR de campaña"""
    settings = get_settings()
    try:
        code = QRCodeTracker(_open_store(inventory)).create(label, listing_slug=slug, target_url=target_url)
    except (ValueError, InventoryError) as e:
        _fail(str(e))
    console.print(f"[green]QR creado: {code.id} -> {code.target_url}[/green]")
    console.print(f"[blue]Imagen: {qr_image_url(code.id, settings.public_base_url, hash_routing=settings.hash_routing)}[/blue]")


@app.command("qr-escanear")
def qr_escanear(
    code_id: str = typer.Argument(..., help="Id del código QR"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Registra un escaneo y muestra la URL de redirección"""
    try:
        redirect = QRCodeTracker(_open_store(inventory)).scan(code_id)
    except InventoryError as e:
        _fail(str(e))
    console.print(redirect)


@app.command("qr-lista")
def qr_lista(inventory: Optional[str] = INVENTORY_OPTION) -> None:
    """Lista los códigos QR con su número de escaneos"""
    codes = QRCodeTracker(_open_store(inventory)).list()
    if not codes:
        console.print("[yellow]No hay códigos QR[/yellow]")
        return
    table = Table(title="Códigos QR")
    table.add_column("Id", style="cyan")
    table.add_column("Campaña", style="white")
    table.add_column("Destino", style="blue")
    table.add_column("Escaneos", style="magenta", justify="right")
    for code in codes:
        table.add_row(code.id, code.label, code.target_url, str(code.scan_count))
    console.print(table)


@app.command("consulta")
def consulta(
    name: str = typer.Option(..., help="Nombre del cliente"),
    email: str = typer.Option(..., help="Email del cliente"),
    inquiry_type: InquiryType = typer.Option(InquiryType.GENERAL, "--type", help="Tipo de consulta"),
    slug: Optional[str] = typer.Option(None, help="Coche por el que pregunta"),
    phone: Optional[str] = typer.Option(None, help="Teléfono (obligatorio para prueba de conducción)"),
    message: Optional[str] = typer.Option(None, help="Mensaje"),
    preferred_date: Optional[str] = typer.Option(None, help="Fecha preferida YYYY-MM-DD (prueba de conducción)"),
    preferred_time: Optional[str] = typer.Option(None, help="Hora preferida"),
    monthly_budget: Optional[float] = typer.Option(None, help="Presupuesto mensual (financiación)"),
    down_payment: Optional[float] = typer.Option(None, help="Entrada disponible (financiación)"),
    trade_in_brand: Optional[str] = typer.Option(None, help="Marca del coche a entregar"),
    trade_in_model: Optional[str] = typer.Option(None, help="Modelo del coche a entregar"),
    trade_in_year: Optional[int] = typer.Option(None, help="Año del coche a entregar"),
    trade_in_mileage: Optional[int] = typer.Option(None, help="Kilometraje del coche a entregar"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Registra una consulta de cliente (info, prueba, financiación o tasación)"""
    try:
        store = _open_store(inventory)
        car_id = store.get_by_slug(slug).id if slug else None
        inquiry = store.create_inquiry({
            "car_id": car_id,
            "inquiry_type": inquiry_type,
            "customer_name": name,
            "email": email,
            "phone": phone,
            "message": message,
            "preferred_date": preferred_date,
            "preferred_time": preferred_time,
            "monthly_budget": monthly_budget,
            "down_payment": down_payment,
            "trade_in_brand": trade_in_brand,
            "trade_in_model": trade_in_model,
            "trade_in_year": trade_in_year,
            "trade_in_mileage": trade_in_mileage,
        })
    except (ValidationError, InventoryError) as e:
        _fail(f"No se pudo registrar la consulta: {e}")
    console.print(f"[green]Consulta registrada: {inquiry.id}[/green]")


@app.command("solicitud")
def solicitud(
    firstname: str = typer.Option(..., help="Nombre del propietario"),
    lastname: str = typer.Option(..., help="Apellido del propietario"),
    brand: str = typer.Option(..., help="Marca del coche ofrecido"),
    model: str = typer.Option(..., help="Modelo del coche ofrecido"),
    expected_price: float = typer.Option(0, help="Precio esperado"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Registra una solicitud de compra de un coche de particular"""
    try:
        request = _open_store(inventory).create_purchase_request({
            "owner_firstname": firstname,
            "owner_lastname": lastname,
            "brand": brand,
            "model": model,
            "expected_price": expected_price,
        })
    except ValidationError as e:
        _fail(f"No se pudo registrar la solicitud: {e}")
    console.print(f"[green]Solicitud registrada: {request.id}[/green]")


@app.command("leads")
def leads(
    status: Optional[LeadStatus] = typer.Option(None, help="Filtrar por estado"),
    limit: Optional[int] = typer.Option(None, help="Mostrar solo los más recientes"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Lista consultas y solicitudes de compra, más recientes primero"""
    store = _open_store(inventory)
    inquiries = store.list_inquiries(status=status, limit=limit)
    requests = store.list_purchase_requests(status=status, limit=limit)
    if not inquiries and not requests:
        console.print("[yellow]No hay leads[/yellow]")
        return

    if inquiries:
        table = Table(title="Consultas")
        table.add_column("Id", style="cyan")
        table.add_column("Tipo", style="white")
        table.add_column("Cliente", style="white")
        table.add_column("Email", style="blue")
        table.add_column("Estado", style="magenta")
        for inquiry in inquiries:
            table.add_row(
                inquiry.id, inquiry.inquiry_type.value, inquiry.customer_name, inquiry.email, inquiry.status.value
            )
        console.print(table)

    if requests:
        table = Table(title="Solicitudes de compra")
        table.add_column("Id", style="cyan")
        table.add_column("Propietario", style="white")
        table.add_column("Vehículo", style="white")
        table.add_column("Precio esperado", style="green", justify="right")
        table.add_column("Estado", style="magenta")
        for request in requests:
            table.add_row(
                request.id,
                f"{request.owner_firstname} {request.owner_lastname}",
                f"{request.brand} {request.model}",
                format_price(request.expected_price, get_settings().default_currency),
                request.status.value,
            )
        console.print(table)


@app.command("lead-estado")
def lead_estado(
    lead_id: str = typer.Argument(..., help="Id de la consulta o solicitud"),
    status: LeadStatus = typer.Option(..., help="Nuevo estado"),
    inventory: Optional[str] = INVENTORY_OPTION,
) -> None:
    """Cambia el estado de un lead (new -> reviewed -> accepted/rejected)"""
    try:
        lead = _open_store(inventory).set_lead_status(lead_id, status)
    except InventoryError as e:
        _fail(str(e))
    console.print(f"[green]Lead {lead.id}: {lead.status.value}[/green]")


@app.command("filtros")
def show_filters(inventory: Optional[str] = INVENTORY_OPTION) -> None:
    """Muestra las opciones de filtro disponibles"""
    console.print("\n[bold blue]OPCIONES DE FILTRO DISPONIBLES[/bold blue]\n")

    console.print("[bold green]MARCAS:[/bold green]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    for i in range(0, len(CAR_BRANDS), 4):
        row = CAR_BRANDS[i:i + 4]
        table.add_row(*(row + [""] * (4 - len(row))))
    console.print(table)

    for title, mapping in [
        ("CARROCERÍAS", BODY_TYPES),
        ("COMBUSTIBLES", FUEL_TYPES),
        ("TRANSMISIONES", TRANSMISSION_TYPES),
        ("TRACCIÓN", DRIVE_TYPES),
    ]:
        console.print(f"\n[bold green]{title}:[/bold green]")
        console.print("• " + ", ".join(f"{value} ({label})" for value, label in mapping.items()))

    console.print("\n[bold green]COLORES:[/bold green]")
    console.print("• " + ", ".join(EXTERIOR_COLORS))

    console.print("\n[bold green]ORDENACIÓN:[/bold green]")
    console.print("• " + ", ".join(f"{key.value} ({label})" for key, label in SORT_LABELS.items()))

    store = _open_store(inventory)
    if len(store):
        summary = store.facet_summary()
        console.print("\n[bold green]EN EL INVENTARIO (disponibles):[/bold green]")
        console.print(f"• Marcas: {', '.join(summary['brands']) or 'N/A'}")
        console.print(f"• Años: {summary['years']['min']} - {summary['years']['max']}")
        console.print(f"• Precios: {summary['prices']['min']} - {summary['prices']['max']}")

    console.print("\n[bold yellow]EJEMPLOS DE USO:[/bold yellow]")
    console.print("[cyan]vip-inventory buscar --brand Porsche --body-types coupe,convertible --sort-by price_asc[/cyan]")
    console.print("[cyan]vip-inventory financiar --price 100000 --down-payment 20000 --term 48 --rate 3.9[/cyan]")


if __name__ == "__main__":
    app()
