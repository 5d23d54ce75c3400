"""User state store.

Owns the user profile, the onboarding flag and the set of redeemed promo
codes, and writes all three through to durable storage on every change.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from pydantic import BaseModel

from aircompanion.clock import Clock, SystemClock
from aircompanion.logging_config import get_logger
from aircompanion.promo.catalog import PromoCatalog, normalize_code, promo_catalog
from aircompanion.settings import Settings, settings as default_settings
from aircompanion.storage.kv import KeyValueStorage, StorageError
from aircompanion.user import credits
from aircompanion.user.models import Location, RedemptionResult, SavedRoute, UserProfile

# Storage keys
USER_KEY = "user"
ONBOARDING_KEY = "onboardingComplete"
REDEEMED_CODES_KEY = "redeemedCodes"
STATE_KEYS = (USER_KEY, ONBOARDING_KEY, REDEEMED_CODES_KEY)

# Redemption messages
NEEDS_PROFILE_MESSAGE = "Please sign in to redeem promo codes"
ALREADY_REDEEMED_MESSAGE = "This promo code has already been redeemed"
INVALID_CODE_MESSAGE = "Invalid or inactive promo code"


def _new_id() -> str:
    return str(uuid.uuid4())


def _parse_flag(raw: str) -> bool:
    value = json.loads(raw)
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean, got {type(value).__name__}")
    return value


def _parse_codes(raw: str) -> list[str]:
    value = json.loads(raw)
    if not isinstance(value, list) or not all(isinstance(code, str) for code in value):
        raise ValueError("Expected a list of strings")

    # Keep first-redemption order, drop duplicates
    codes: list[str] = []
    for code in value:
        code = normalize_code(code)
        if code and code not in codes:
            codes.append(code)
    return codes


@dataclass
class PersistOutcome:
    """Result of one write of the state snapshot."""
    ok: bool
    error: Exception | None = None
    at: datetime | None = None
    keys: tuple[str, ...] = field(default_factory=tuple)


class UserStateStore:
    """Single source of truth for the local user's state.

    Build one per process and hand it to whatever needs it. Call ``load()``
    (or use the store as a context manager) before issuing operations, and
    ``close()`` when done.

    Every mutation serializes the new state, swaps it in as one step and
    writes the complete snapshot to storage before returning. A failed write leaves
    memory as it is; see ``last_persist`` and ``on_persist_error``.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Clock | None = None,
        catalog: PromoCatalog | None = None,
        config: Settings | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        """Initialize store.

        Args:
            storage: Durable key-value storage
            clock: Time source (defaults to local wall clock)
            catalog: Promo code catalog
            config: Settings (credit allowance and search cost)
            id_factory: Generator for profile and route ids
        """
        self.storage = storage
        self.clock = clock or SystemClock()
        self.catalog = catalog or promo_catalog
        self.config = config or default_settings
        self.id_factory = id_factory or _new_id
        self.logger = get_logger(__name__)

        self._profile: UserProfile | None = None
        self._onboarding_complete = False
        self._redeemed_codes: list[str] = []
        self._persist_error_handlers: list[Callable[[Exception], None]] = []
        self.last_persist: PersistOutcome | None = None
        self.is_open = False

    @classmethod
    def open(cls, storage: KeyValueStorage, **kwargs: Any) -> "UserStateStore":
        """Build a store and load persisted state."""
        return cls(storage, **kwargs).load()

    def __enter__(self) -> "UserStateStore":
        if not self.is_open:
            self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ==================== LIFECYCLE ====================

    def load(self) -> "UserStateStore":
        """Read persisted state and apply the daily credit refresh.

        Missing or unreadable records fall back to their defaults.

        Returns:
            The store itself
        """
        profile = self._read_record(USER_KEY, UserProfile.model_validate_json)
        onboarding_complete = self._read_record(ONBOARDING_KEY, _parse_flag)
        redeemed_codes = self._read_record(REDEEMED_CODES_KEY, _parse_codes)

        self._profile = profile
        self._onboarding_complete = bool(onboarding_complete)
        self._redeemed_codes = redeemed_codes or []
        self.is_open = True

        self.logger.info(
            "user_state_loaded",
            has_profile=profile is not None,
            onboarding_complete=self._onboarding_complete,
            redeemed_codes=len(self._redeemed_codes),
        )

        self.refresh_daily_credits()
        return self

    def close(self) -> None:
        """Release the storage backend."""
        if self.is_open:
            self.storage.close()
            self.is_open = False

    def refresh_daily_credits(self) -> bool:
        """Apply the daily refresh rule to the current profile.

        Returns:
            True if the balance was reset
        """
        self._ensure_open()
        if self._profile is None:
            return False

        now = self.clock.now()
        refreshed = credits.apply_daily_refresh(
            self._profile, now, self.config.daily_credit_allowance
        )
        if refreshed is self._profile:
            return False

        previous_balance = self._profile.air_credits
        self._apply(refreshed, self._onboarding_complete, self._redeemed_codes)

        self.logger.info(
            "daily_credits_refreshed",
            user_id=refreshed.id,
            previous_balance=previous_balance,
            new_balance=refreshed.air_credits,
        )
        return True

    def on_persist_error(self, handler: Callable[[Exception], None]) -> None:
        """Register a callback invoked with the error of every failed write."""
        self._persist_error_handlers.append(handler)

    # ==================== ACCESSORS ====================

    @property
    def profile(self) -> UserProfile | None:
        return self._profile

    @property
    def is_onboarding_complete(self) -> bool:
        return self._onboarding_complete

    @property
    def redeemed_codes(self) -> tuple[str, ...]:
        return tuple(self._redeemed_codes)

    @property
    def routes(self) -> tuple[SavedRoute, ...]:
        if self._profile is None:
            return ()
        return self._profile.preferred_routes

    def available_credits(self) -> int:
        """Current balance, 0 before a profile exists."""
        if self._profile is None:
            return 0
        return self._profile.air_credits

    def credit_summary(self) -> dict[str, Any]:
        """Balance summary for display."""
        return credits.credit_summary(
            self._profile,
            self.clock.now(),
            allowance=self.config.daily_credit_allowance,
            search_cost=self.config.route_search_cost,
        )

    # ==================== PROFILE ====================

    def update_profile(self, **changes: Any) -> UserProfile:
        """Merge fields into the profile, creating it if needed.

        A new profile starts with the daily credit allowance and a fresh id.

        Args:
            **changes: Profile fields to overwrite (snake_case names)

        Returns:
            The updated profile

        Raises:
            ValueError: On unknown fields, an id change, invalid values or
                values that cannot be stored. State is left untouched.
        """
        self._ensure_open()

        if "id" in changes:
            raise ValueError("Profile id cannot be changed")

        unknown = set(changes) - set(UserProfile.model_fields)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        created = self._profile is None
        base = self._new_profile_data() if created else self._profile.model_dump()
        profile = UserProfile.model_validate({**base, **changes})

        self._apply(profile, self._onboarding_complete, self._redeemed_codes)

        self.logger.info(
            "profile_created" if created else "profile_updated",
            user_id=profile.id,
            fields=sorted(changes),
        )
        return profile

    def set_home_location(self, location: Location | Mapping[str, float]) -> UserProfile:
        """Store the coordinate used for local air quality."""
        return self.update_profile(home_location=location)

    def complete_onboarding(self) -> None:
        """Mark onboarding as done."""
        self.set_onboarding_complete(True)

    def set_onboarding_complete(self, complete: bool) -> None:
        """Set the onboarding flag. The profile is not touched."""
        self._ensure_open()
        self._apply(self._profile, complete, self._redeemed_codes)

        self.logger.info("onboarding_flag_set", complete=complete)

    def reset_all(self) -> PersistOutcome:
        """Forget the profile, onboarding flag and redeemed codes.

        Safe to call repeatedly.

        Returns:
            Outcome of deleting the persisted records
        """
        self._ensure_open()
        self._profile = None
        self._onboarding_complete = False
        self._redeemed_codes = []

        outcome = self._commit(lambda: self.storage.delete_many(STATE_KEYS), STATE_KEYS)
        self.logger.info("user_state_reset", persisted=outcome.ok)
        return outcome

    # ==================== ROUTES ====================

    def save_route(self, route: Mapping[str, Any] | BaseModel) -> SavedRoute:
        """Append a route to the saved routes.

        The store assigns the id; any id on the input is discarded. Creates
        the profile if none exists yet.

        Args:
            route: Route payload with at least ``start`` and ``end``

        Returns:
            The saved route

        Raises:
            ValueError: If the payload is invalid or cannot be stored
        """
        self._ensure_open()

        if isinstance(route, BaseModel):
            data = route.model_dump()
        else:
            data = dict(route)
        data.pop("id", None)

        saved = SavedRoute.model_validate({**data, "id": self.id_factory()})
        self.update_profile(preferred_routes=[*self.routes, saved])

        self.logger.info("route_saved", route_id=saved.id, total=len(self.routes))
        return saved

    def delete_route(self, route_id: str) -> bool:
        """Remove a saved route.

        Returns:
            True if a route was removed, False if nothing matched
        """
        self._ensure_open()

        remaining = [route for route in self.routes if route.id != route_id]
        if len(remaining) == len(self.routes):
            return False

        self.update_profile(preferred_routes=remaining)
        self.logger.info("route_deleted", route_id=route_id, total=len(remaining))
        return True

    # ==================== CREDITS ====================

    def spend_credits(self, amount: int) -> bool:
        """Spend credits if the balance covers them.

        Args:
            amount: Credits to spend (non-negative)

        Returns:
            True if spent, False if rejected (balance unchanged)
        """
        self._ensure_open()

        if amount < 0:
            self.logger.warning("credits_spend_rejected", amount=amount, reason="negative_amount")
            return False

        if self._profile is None or self._profile.air_credits < amount:
            self.logger.info(
                "credits_spend_rejected",
                amount=amount,
                available=self.available_credits(),
                reason="insufficient_credits",
            )
            return False

        new_balance = self._profile.air_credits - amount
        profile = self._profile.model_copy(update={"air_credits": new_balance})
        self._apply(profile, self._onboarding_complete, self._redeemed_codes)

        self.logger.info(
            "credits_spent",
            user_id=self._profile.id,
            amount=amount,
            new_balance=new_balance,
        )
        return True

    def charge_route_search(self) -> bool:
        """Spend the cost of one route search."""
        return self.spend_credits(self.config.route_search_cost)

    def redeem_promo_code(self, code: str) -> RedemptionResult:
        """Redeem a promo code once for this installation.

        The balance and the redeemed-code set change together or not at all.

        Args:
            code: Code as entered (any case)

        Returns:
            Redemption result with a user-facing message
        """
        self._ensure_open()

        if self._profile is None:
            return RedemptionResult(success=False, message=NEEDS_PROFILE_MESSAGE)

        normalized = normalize_code(code)
        if normalized in self._redeemed_codes:
            self.logger.info("promo_code_rejected", code=normalized, reason="already_redeemed")
            return RedemptionResult(success=False, message=ALREADY_REDEEMED_MESSAGE)

        promo = self.catalog.lookup(normalized)
        if promo is None:
            self.logger.info("promo_code_rejected", code=normalized, reason="invalid_or_inactive")
            return RedemptionResult(success=False, message=INVALID_CODE_MESSAGE)

        profile = self._profile.model_copy(
            update={"air_credits": self._profile.air_credits + promo.credits}
        )
        self._apply(profile, self._onboarding_complete, [*self._redeemed_codes, normalized])

        self.logger.info(
            "promo_code_redeemed",
            user_id=profile.id,
            code=normalized,
            credits=promo.credits,
            new_balance=profile.air_credits,
        )
        return RedemptionResult(
            success=True,
            message=f"Successfully redeemed {promo.credits} air credits!",
            credits=promo.credits,
            balance=profile.air_credits,
        )

    # ==================== PERSISTENCE ====================

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise RuntimeError("UserStateStore is not open; call load() first")

    def _new_profile_data(self) -> dict[str, Any]:
        return {
            "id": self.id_factory(),
            "air_credits": self.config.daily_credit_allowance,
            "last_credit_refresh": self.clock.now(),
        }

    @staticmethod
    def _snapshot(
        profile: UserProfile | None,
        onboarding_complete: bool,
        redeemed_codes: list[str],
    ) -> dict[str, str]:
        snapshot = {
            ONBOARDING_KEY: json.dumps(onboarding_complete),
            REDEEMED_CODES_KEY: json.dumps(redeemed_codes),
        }
        if profile is not None:
            snapshot[USER_KEY] = profile.to_record()
        return snapshot

    def _apply(
        self,
        profile: UserProfile | None,
        onboarding_complete: bool,
        redeemed_codes: list[str],
    ) -> PersistOutcome:
        """Swap in a new state and write it through.

        The records are serialized before anything is swapped, so a state
        that cannot be stored raises ValueError and leaves the store as it
        was.
        """
        snapshot = self._snapshot(profile, onboarding_complete, redeemed_codes)

        self._profile = profile
        self._onboarding_complete = onboarding_complete
        self._redeemed_codes = list(redeemed_codes)

        return self._commit(lambda: self.storage.set_many(snapshot), tuple(snapshot))

    def _commit(self, write: Callable[[], None], keys: tuple[str, ...]) -> PersistOutcome:
        """Run a storage write and record how it went."""
        try:
            write()
        except StorageError as e:
            outcome = PersistOutcome(ok=False, error=e, at=self.clock.now(), keys=keys)
            self.last_persist = outcome
            self.logger.error("state_persist_failed", keys=list(keys), error=str(e))
            for handler in self._persist_error_handlers:
                handler(e)
            return outcome

        outcome = PersistOutcome(ok=True, at=self.clock.now(), keys=keys)
        self.last_persist = outcome
        return outcome

    def _read_record(self, key: str, parse: Callable[[str], Any]) -> Any:
        """Read and parse one record, None if absent or unusable."""
        try:
            raw = self.storage.get(key)
        except StorageError as e:
            self.logger.warning("persisted_record_unreadable", key=key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return parse(raw)
        except ValueError as e:
            self.logger.warning("persisted_record_malformed", key=key, error=str(e))
            return None
