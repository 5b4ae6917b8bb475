"""
Almacén del inventario: anuncios, códigos QR y leads persistidos en un fichero JSON
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import orjson

from .config import get_settings
from .filters import FilterSelection
from .models import (
    LEAD_TRANSITIONS,
    Inquiry,
    InquiryType,
    LeadStatus,
    ListingStatus,
    PurchaseRequest,
    QRCode,
    VehicleListing,
    slugify_listing,
)
from .search import apply_filters

logger = logging.getLogger(__name__)


class InventoryError(RuntimeError):
    """Error de operación sobre el inventario"""


class ListingNotFound(InventoryError):
    pass


class DuplicateSlug(InventoryError):
    pass


class QRCodeNotFound(InventoryError):
    pass


class LeadNotFound(InventoryError):
    pass


class InvalidLeadTransition(InventoryError):
    """Cambio de estado no permitido (p. ej. reabrir un lead rechazado)"""


# Campos que el panel de administración puede editar tras la creación
EDITABLE_FIELDS = frozenset(VehicleListing.model_fields) - {"id", "created_at", "updated_at"}


class InventoryStore:
    """
    Colección de anuncios, códigos QR y leads respaldada por un fichero JSON.

    Formato del fichero:
    {"cars": [...], "qr_codes": [...], "inquiries": [...], "purchase_requests": [...]}
    Si el fichero no existe se empieza con un inventario vacío.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, *, autosave: bool = True) -> None:
        self.path = Path(path or get_settings().inventory_path)
        self.autosave = autosave
        self._listings: Dict[str, VehicleListing] = {}
        self._qr_codes: Dict[str, QRCode] = {}
        self._inquiries: Dict[str, Inquiry] = {}
        self._purchase_requests: Dict[str, PurchaseRequest] = {}
        self.load()

    # ------------------------------------------------------------------
    # Persistencia
    # ------------------------------------------------------------------

    def load(self) -> None:
        self._listings.clear()
        self._qr_codes.clear()
        self._inquiries.clear()
        self._purchase_requests.clear()
        if not self.path.exists():
            logger.info(f"Inventario {self.path} no existe, se empieza vacío")
            return
        data = orjson.loads(self.path.read_bytes())
        for raw in data.get("cars", []):
            listing = VehicleListing.model_validate(raw)
            self._listings[listing.id] = listing
        for raw in data.get("qr_codes", []):
            code = QRCode.model_validate(raw)
            self._qr_codes[code.id] = code
        for raw in data.get("inquiries", []):
            inquiry = Inquiry.model_validate(raw)
            self._inquiries[inquiry.id] = inquiry
        for raw in data.get("purchase_requests", []):
            request = PurchaseRequest.model_validate(raw)
            self._purchase_requests[request.id] = request
        logger.info(
            f"Cargados {len(self._listings)} anuncios, {len(self._qr_codes)} QR y "
            f"{len(self._inquiries) + len(self._purchase_requests)} leads desde {self.path}"
        )

    def save(self) -> Path:
        payload = {
            "cars": [listing.model_dump(mode="json") for listing in self._listings.values()],
            "qr_codes": [code.model_dump(mode="json") for code in self._qr_codes.values()],
            "inquiries": [inquiry.model_dump(mode="json") for inquiry in self._inquiries.values()],
            "purchase_requests": [request.model_dump(mode="json") for request in self._purchase_requests.values()],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        return self.path

    def _persist(self) -> None:
        if self.autosave:
            self.save()

    # ------------------------------------------------------------------
    # Anuncios
    # ------------------------------------------------------------------

    def list_listings(self, status: Optional[ListingStatus] = None) -> List[VehicleListing]:
        return [
            listing for listing in self._listings.values() if status is None or listing.status == status
        ]

    def get(self, listing_id: str) -> VehicleListing:
        try:
            return self._listings[listing_id]
        except KeyError:
            raise ListingNotFound(f"Anuncio no encontrado: {listing_id}") from None

    def get_by_slug(self, slug: str) -> VehicleListing:
        for listing in self._listings.values():
            if listing.slug == slug:
                return listing
        raise ListingNotFound(f"No hay ningún anuncio con slug '{slug}'")

    def _ensure_unique_slug(self, slug: str, exclude_id: Optional[str] = None) -> None:
        for listing in self._listings.values():
            if listing.slug == slug and listing.id != exclude_id:
                raise DuplicateSlug(f"El slug '{slug}' ya está en uso por {listing.id}")

    def create(self, data: Dict[str, Any]) -> VehicleListing:
        """
        Da de alta un anuncio

        Si no se indica slug se genera a partir de marca, modelo y año.
        """
        data = dict(data)
        if not data.get("slug"):
            data["slug"] = slugify_listing(data.get("brand") or "", data.get("model") or "", data.get("year"))
        listing = VehicleListing.model_validate(data)
        if listing.id in self._listings:
            raise InventoryError(f"Ya existe un anuncio con id {listing.id}")
        self._ensure_unique_slug(listing.slug)
        self._listings[listing.id] = listing
        self._persist()
        logger.info(f"Alta de anuncio {listing.slug} ({listing.id})")
        return listing

    def update(self, listing_id: str, **changes: Any) -> VehicleListing:
        """Edita un anuncio (estado, precio...) revalidando el registro completo"""
        current = self.get(listing_id)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InventoryError(f"Campos no editables: {', '.join(sorted(unknown))}")
        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = datetime.now(timezone.utc)
        updated = VehicleListing.model_validate(data)
        if updated.slug != current.slug:
            self._ensure_unique_slug(updated.slug, exclude_id=listing_id)
        self._listings[listing_id] = updated
        self._persist()
        logger.info(f"Anuncio {updated.slug} actualizado: {', '.join(sorted(changes))}")
        return updated

    def set_status(self, listing_id: str, status: ListingStatus) -> VehicleListing:
        return self.update(listing_id, status=ListingStatus(status))

    def delete(self, listing_id: str) -> VehicleListing:
        listing = self.get(listing_id)
        del self._listings[listing_id]
        self._persist()
        logger.info(f"Baja de anuncio {listing.slug} ({listing_id})")
        return listing

    def search(
        self,
        selection: FilterSelection,
        status: Optional[ListingStatus] = ListingStatus.AVAILABLE,
    ) -> List[VehicleListing]:
        """Búsqueda del escaparate: por defecto solo anuncios disponibles"""
        return apply_filters(selection, self._listings.values(), status=status)

    def facet_summary(self, status: Optional[ListingStatus] = ListingStatus.AVAILABLE) -> Dict[str, Any]:
        """
        Valores de faceta presentes en el inventario

        Returns:
            Dict con listas ordenadas de marcas, carrocerías, combustibles,
            transmisiones y colores, y rangos min/max de año, precio y kilometraje
        """
        listings = self.list_listings(status)

        def distinct(attribute: str) -> List[str]:
            return sorted({getattr(l, attribute) for l in listings if getattr(l, attribute)})

        def value_range(attribute: str) -> Dict[str, Any]:
            values = [getattr(l, attribute) for l in listings if getattr(l, attribute) is not None]
            return {"min": min(values) if values else None, "max": max(values) if values else None}

        return {
            "brands": distinct("brand"),
            "body_types": distinct("body_type"),
            "fuel_types": distinct("fuel_type"),
            "transmissions": distinct("transmission"),
            "colors": distinct("exterior_color"),
            "years": value_range("year"),
            "prices": value_range("price"),
            "mileage": value_range("mileage"),
        }

    # ------------------------------------------------------------------
    # Códigos QR
    # ------------------------------------------------------------------

    def list_qr_codes(self) -> List[QRCode]:
        return list(self._qr_codes.values())

    def get_qr_code(self, code_id: str) -> QRCode:
        try:
            return self._qr_codes[code_id]
        except KeyError:
            raise QRCodeNotFound(f"Código QR no válido: {code_id}") from None

    def put_qr_code(self, code: QRCode) -> QRCode:
        self._qr_codes[code.id] = code
        self._persist()
        return code

    def delete_qr_code(self, code_id: str) -> QRCode:
        code = self.get_qr_code(code_id)
        del self._qr_codes[code_id]
        self._persist()
        return code

    # ------------------------------------------------------------------
    # Leads: consultas de clientes y solicitudes de compra
    # ------------------------------------------------------------------

    @staticmethod
    def _newest_first(leads, status: Optional[LeadStatus], limit: Optional[int]) -> list:
        selected = [lead for lead in leads if status is None or lead.status == status]
        selected.sort(key=lambda lead: lead.created_at, reverse=True)
        return selected if limit is None else selected[:limit]

    @staticmethod
    def _check_transition(lead_id: str, current: LeadStatus, status: LeadStatus) -> None:
        if status not in LEAD_TRANSITIONS[current]:
            raise InvalidLeadTransition(f"El lead {lead_id} no puede pasar de '{current.value}' a '{status.value}'")

    def create_inquiry(self, data: Dict[str, Any]) -> Inquiry:
        """
        Registra una consulta de cliente

        Si la consulta se refiere a un coche, car_id debe existir en el inventario.
        """
        inquiry = Inquiry.model_validate(data)
        if inquiry.car_id is not None:
            self.get(inquiry.car_id)
        self._inquiries[inquiry.id] = inquiry
        self._persist()
        logger.info(f"Nueva consulta {inquiry.inquiry_type.value} de {inquiry.customer_name} ({inquiry.id})")
        return inquiry

    def list_inquiries(
        self,
        status: Optional[LeadStatus] = None,
        inquiry_type: Optional[InquiryType] = None,
        limit: Optional[int] = None,
    ) -> List[Inquiry]:
        inquiries = [
            inquiry for inquiry in self._inquiries.values()
            if inquiry_type is None or inquiry.inquiry_type == inquiry_type
        ]
        return self._newest_first(inquiries, status, limit)

    def get_inquiry(self, inquiry_id: str) -> Inquiry:
        try:
            return self._inquiries[inquiry_id]
        except KeyError:
            raise LeadNotFound(f"Consulta no encontrada: {inquiry_id}") from None

    def set_inquiry_status(self, inquiry_id: str, status: LeadStatus) -> Inquiry:
        inquiry = self.get_inquiry(inquiry_id)
        status = LeadStatus(status)
        self._check_transition(inquiry_id, inquiry.status, status)
        updated = inquiry.model_copy(update={"status": status})
        self._inquiries[inquiry_id] = updated
        self._persist()
        logger.info(f"Consulta {inquiry_id}: {inquiry.status.value} -> {status.value}")
        return updated

    def delete_inquiry(self, inquiry_id: str) -> Inquiry:
        inquiry = self.get_inquiry(inquiry_id)
        del self._inquiries[inquiry_id]
        self._persist()
        return inquiry

    def create_purchase_request(self, data: Dict[str, Any]) -> PurchaseRequest:
        request = PurchaseRequest.model_validate(data)
        self._purchase_requests[request.id] = request
        self._persist()
        logger.info(f"Nueva solicitud de compra {request.brand} {request.model} ({request.id})")
        return request

    def list_purchase_requests(
        self,
        status: Optional[LeadStatus] = None,
        limit: Optional[int] = None,
    ) -> List[PurchaseRequest]:
        return self._newest_first(self._purchase_requests.values(), status, limit)

    def get_purchase_request(self, request_id: str) -> PurchaseRequest:
        try:
            return self._purchase_requests[request_id]
        except KeyError:
            raise LeadNotFound(f"Solicitud de compra no encontrada: {request_id}") from None

    def set_purchase_request_status(self, request_id: str, status: LeadStatus) -> PurchaseRequest:
        request = self.get_purchase_request(request_id)
        status = LeadStatus(status)
        self._check_transition(request_id, request.status, status)
        updated = request.model_copy(update={"status": status})
        self._purchase_requests[request_id] = updated
        self._persist()
        logger.info(f"Solicitud de compra {request_id}: {request.status.value} -> {status.value}")
        return updated

    def delete_purchase_request(self, request_id: str) -> PurchaseRequest:
        request = self.get_purchase_request(request_id)
        del self._purchase_requests[request_id]
        self._persist()
        return request

    def set_lead_status(self, lead_id: str, status: LeadStatus) -> Union[Inquiry, PurchaseRequest]:
        """Cambia el estado de una consulta o solicitud de compra buscando el id en ambas"""
        if lead_id in self._inquiries:
            return self.set_inquiry_status(lead_id, status)
        if lead_id in self._purchase_requests:
            return self.set_purchase_request_status(lead_id, status)
        raise LeadNotFound(f"Lead no encontrado: {lead_id}")

    def __len__(self) -> int:
        return len(self._listings)


__all__ = [
    "InventoryStore",
    "InventoryError",
    "ListingNotFound",
    "DuplicateSlug",
    "QRCodeNotFound",
    "LeadNotFound",
    "InvalidLeadTransition",
]
