from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class InventorySettings(BaseSettings):
    default_currency: str = Field(default="CHF", min_length=3, max_length=3)
    inventory_path: str = "inventory.json"
    exports_dir: str = "exports"
    log_level: str = "INFO"
    public_base_url: str = "https://www.vipluxurycars.ch"
    qr_image_endpoint: str = "https://api.qrserver.com/v1/create-qr-code/"
    hash_routing: bool = True

    # Extremos de los sliders del buscador (en el extremo = sin límite)
    price_slider_max: int = Field(default=2_000_000, gt=0)
    mileage_slider_max: int = Field(default=200_000, gt=0)

    default_down_payment_ratio: float = Field(default=0.2, ge=0, le=1)
    default_term_months: int = Field(default=48, gt=0)
    default_interest_rate: float = Field(default=3.9, ge=0)

    max_compared_vehicles: int = 3

    class Config:
        env_prefix = "VIP_INVENTORY_"
        env_file = ".env"


@lru_cache(maxsize=1)
def get_settings() -> InventorySettings:
    return InventorySettings()


__all__ = ["InventorySettings", "get_settings"]
