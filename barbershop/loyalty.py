# barbershop/loyalty.py

import logging
from typing import Optional

from . import data
from .core import KeyedLocks
from .errors import InsufficientBalanceError, ValidationError
from .events import EventDispatcher, LoyaltyMilestoneReached
from .models import LoyaltyProfile
from .store import DocumentStore

logger = logging.getLogger(__name__)


class LoyaltyLedger:
    """Per-customer point balances.

    Only arithmetic lives here. Redemption policy (how many points buy which
    discount) belongs to the appointment ledger; ``milestone`` is just the
    balance whose upward crossing gets announced.
    """

    def __init__(
        self,
        store: DocumentStore,
        dispatcher: EventDispatcher,
        milestone: int = data.POINTS_TO_REDEEM,
        lock_timeout: float = 5.0,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.milestone = milestone
        self.locks = KeyedLocks("customer", lock_timeout)

    def _load(self, customer_identity: str) -> Optional[LoyaltyProfile]:
        for raw in self.store.get(data.LOYALTY_PROFILES):
            if raw["customer_identity"] == customer_identity:
                return LoyaltyProfile.model_validate(raw)
        return None

    def _save(self, profile: LoyaltyProfile) -> None:
        with self.store.writing():
            items = [
                p for p in self.store.get(data.LOYALTY_PROFILES)
                if p["customer_identity"] != profile.customer_identity
            ]
            items.append(profile.model_dump(mode="json"))
            self.store.put(data.LOYALTY_PROFILES, items)

    def find_profile(self, customer_identity: str) -> Optional[LoyaltyProfile]:
        return self._load(customer_identity)

    def get_balance(self, customer_identity: str) -> int:
        profile = self._load(customer_identity)
        return profile.points if profile else 0

    def ensure_profile(self, customer_identity: str, display_name: str = "") -> LoyaltyProfile:
        with self.locks.hold(customer_identity):
            profile = self._load(customer_identity)
            if profile is None:
                profile = LoyaltyProfile(customer_identity=customer_identity, display_name=display_name)
                self._save(profile)
                logger.info("Created loyalty profile for %s", customer_identity)
            elif display_name and profile.display_name != display_name:
                profile.display_name = display_name
                self._save(profile)
            return profile

    def credit(self, customer_identity: str, delta: int, completed: bool = False, announce: bool = True) -> int:
        """Adds ``delta`` points; ``completed`` also counts a finished appointment.

        ``announce=False`` is for undoing a debit that never took effect, so
        observers see no milestone for it.
        """
        if delta < 0:
            raise ValidationError("Credit amount must not be negative")
        with self.locks.hold(customer_identity):
            profile = self._load(customer_identity) or LoyaltyProfile(customer_identity=customer_identity)
            before = profile.points
            profile.points += delta
            if completed:
                profile.total_completed_appointments += 1
            self._save(profile)
        logger.info("Credited %d points to %s (balance %d)", delta, customer_identity, profile.points)

        if announce and before < self.milestone <= profile.points:
            self.dispatcher.publish(
                LoyaltyMilestoneReached(customer_identity=customer_identity, points=profile.points)
            )
        return profile.points

    def debit(self, customer_identity: str, delta: int) -> int:
        if delta < 0:
            raise ValidationError("Debit amount must not be negative")
        with self.locks.hold(customer_identity):
            profile = self._load(customer_identity)
            balance = profile.points if profile else 0
            if profile is None or balance < delta:
                logger.warning("Refused debit of %d from %s (balance %d)", delta, customer_identity, balance)
                raise InsufficientBalanceError(
                    f"Balance of {balance} points is not enough to redeem {delta}"
                )
            profile.points -= delta
            self._save(profile)
        logger.info("Debited %d points from %s (balance %d)", delta, customer_identity, profile.points)
        return profile.points

