"""
Campañas QR: códigos que apuntan a un coche o a una URL y cuentan escaneos
"""
from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode

from .config import get_settings
from .inventory import InventoryStore
from .models import QRCode

logger = logging.getLogger(__name__)

CAR_PATH = "/cars/{slug}"
QR_REDIRECT_PATH = "/qr/{code_id}"


def is_absolute_url(target_url: str) -> bool:
    return target_url.startswith(("http://", "https://"))


def resolve_redirect(target_url: str, base_url: str, hash_routing: bool = False) -> str:
    """
    Destino final al escanear un código

    Las URLs absolutas se devuelven tal cual; las rutas internas se resuelven
    contra la web pública (como '#/ruta' si se usa HashRouter).
    """
    if is_absolute_url(target_url):
        return target_url
    path = target_url if target_url.startswith("/") else f"/{target_url}"
    base = base_url.rstrip("/")
    if hash_routing:
        return f"{base}/#{path}"
    return f"{base}{path}"


def qr_image_url(
    code_id: str,
    base_url: str,
    size: int = 300,
    endpoint: Optional[str] = None,
    hash_routing: bool = True,
) -> str:
    """URL de la imagen del QR (renderizada por un servicio externo) que codifica la ruta de escaneo"""
    scan_url = resolve_redirect(QR_REDIRECT_PATH.format(code_id=code_id), base_url, hash_routing)
    endpoint = endpoint or get_settings().qr_image_endpoint
    return f"{endpoint}?{urlencode({'size': f'{size}x{size}', 'data': scan_url})}"


class QRCodeTracker:
    """Alta, escaneo y listado de códigos QR sobre el almacén del inventario"""

    def __init__(self, store: InventoryStore) -> None:
        self.store = store

    def create(
        self,
        label: str,
        *,
        listing_slug: Optional[str] = None,
        target_url: Optional[str] = None,
    ) -> QRCode:
        """
        Crea un código QR

        Args:
            label: Nombre de la campaña (ej: "Summer Sale Flyer")
            listing_slug: Slug del coche al que apunta, o
            target_url: URL o ruta personalizada

        Exactamente uno de listing_slug / target_url es obligatorio.
        """
        if (listing_slug is None) == (target_url is None):
            raise ValueError("Indica un coche (listing_slug) o una URL de destino (target_url), no ambos")
        if listing_slug is not None:
            # Falla con ListingNotFound si el coche no existe
            listing = self.store.get_by_slug(listing_slug)
            target_url = CAR_PATH.format(slug=listing.slug)
        code = QRCode(label=label, target_url=target_url, scan_count=0)
        self.store.put_qr_code(code)
        logger.info(f"QR '{code.label}' creado -> {code.target_url}")
        return code

    def record_scan(self, code_id: str) -> QRCode:
        """Suma un escaneo y devuelve el código actualizado"""
        code = self.store.get_qr_code(code_id)
        scanned = code.model_copy(update={"scan_count": code.scan_count + 1})
        self.store.put_qr_code(scanned)
        logger.info(f"Escaneo de QR {code_id}: {scanned.scan_count} en total")
        return scanned

    def scan(self, code_id: str, base_url: Optional[str] = None, hash_routing: Optional[bool] = None) -> str:
        """Registra el escaneo y devuelve la URL a la que redirigir"""
        settings = get_settings()
        code = self.record_scan(code_id)
        return resolve_redirect(
            code.target_url,
            base_url or settings.public_base_url,
            settings.hash_routing if hash_routing is None else hash_routing,
        )

    def list(self) -> List[QRCode]:
        return sorted(self.store.list_qr_codes(), key=lambda code: code.created_at, reverse=True)

    def delete(self, code_id: str) -> QRCode:
        return self.store.delete_qr_code(code_id)


__all__ = ["QRCodeTracker", "resolve_redirect", "qr_image_url", "is_absolute_url"]
