"""Static promo code catalog for air credits."""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PromoCode(BaseModel):
    """A redeemable promo code.

    Codes are stored in canonical uppercase form; matching is
    case-insensitive.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    credits: int = Field(gt=0)
    description: str = ""
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def canonical_code(cls, value: str) -> str:
        return normalize_code(value)


def normalize_code(code: str) -> str:
    """Canonical form of a promo code (trimmed, uppercase)."""
    return code.strip().upper()


# Add, edit or disable codes here. Inactive codes stay listed but cannot
# be redeemed.
PROMO_CODES: tuple[PromoCode, ...] = (
    PromoCode(
        code="WELCOME50",
        credits=50,
        description="Welcome bonus - Get 50 air credits",
    ),
    PromoCode(
        code="CLEANAIR100",
        credits=100,
        description="Special offer - Get 100 air credits",
    ),
    PromoCode(
        code="FIRST25",
        credits=25,
        description="First time user bonus - Get 25 air credits",
    ),
    PromoCode(
        code="SUMMER2024",
        credits=75,
        description="Summer special - Get 75 air credits",
        is_active=False,
    ),
    PromoCode(
        code="REFER25",
        credits=25,
        description="Refer a friend - Get 25 air credits",
    ),
)


class PromoCatalog:
    """Read-only lookup over a fixed set of promo codes.

    The catalog never records redemptions; the caller owns that state.
    """

    def __init__(self, codes: Iterable[PromoCode] = PROMO_CODES):
        """Initialize catalog.

        Args:
            codes: Catalog entries

        Raises:
            ValueError: If two entries share a code after normalization
        """
        self._codes: dict[str, PromoCode] = {}
        for promo in codes:
            if promo.code in self._codes:
                raise ValueError(f"Duplicate promo code in catalog: {promo.code}")
            self._codes[promo.code] = promo

    def lookup(self, code: str) -> PromoCode | None:
        """Find an active promo code.

        Args:
            code: Code as typed by the user (any case)

        Returns:
            PromoCode if known and active, None otherwise
        """
        if not code:
            return None

        promo = self._codes.get(normalize_code(code))
        if promo is None or not promo.is_active:
            return None
        return promo

    def list_active(self) -> list[PromoCode]:
        """Active codes in catalog order."""
        return [promo for promo in self._codes.values() if promo.is_active]

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_code(code) in self._codes

    def __len__(self) -> int:
        return len(self._codes)


# Default catalog instance
promo_catalog = PromoCatalog()
