"""
Utility functions: financing calculator, share URLs and display formatting
"""
from .url_builder import build_shop_url, parse_shop_url
from .financing_calculator import (
    FinancingCalculator,
    FinancingError,
    FinancingQuote,
    calculate_financing,
    financing_calculator,
)
from .formatting import compare_listings, format_listing_price, format_mileage, format_price

__all__ = [
    "build_shop_url",
    "parse_shop_url",
    "FinancingCalculator",
    "FinancingError",
    "FinancingQuote",
    "calculate_financing",
    "financing_calculator",
    "compare_listings",
    "format_mileage",
    "format_price",
    "format_listing_price",
]
