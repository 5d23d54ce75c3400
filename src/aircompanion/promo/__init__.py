"""Promo code catalog."""

from aircompanion.promo.catalog import PROMO_CODES, PromoCatalog, PromoCode, normalize_code, promo_catalog

__all__ = ["PROMO_CODES", "PromoCatalog", "PromoCode", "normalize_code", "promo_catalog"]
