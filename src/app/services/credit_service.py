# src/app/services/credit_service.py
"""
Credit accounting service.
Prices transcriptions and settles them against the profile balance.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from src.app.domain.errors import InsufficientCreditsError, PersistenceError
from src.app.domain.models import Profile, Settlement, UsageAction, UsageLogEntry
from src.app.domain.plans import CREDITS_PER_MINUTE
from src.app.infra.db.base import ProfileRepository, UsageLogRepository

logger = logging.getLogger(__name__)

# Used when the engine reports no (or a zero) duration
FALLBACK_DURATION_SECONDS = 60


def calculate_credit_cost(
    duration_seconds: Optional[float],
    credits_per_minute: int = CREDITS_PER_MINUTE,
) -> int:
    """
    Credits for a transcription: whole minutes rounded up, times the rate,
    never less than one credit.

    125s at 1 credit/minute -> 3 credits.
    """
    seconds = duration_seconds or FALLBACK_DURATION_SECONDS
    minutes = math.ceil(seconds / 60)
    return max(1, minutes * credits_per_minute)


class CreditService:
    """
    Service for charging credits.

    Responsibilities:
    - Price a transcription from its duration
    - Reject jobs the balance cannot cover
    - Deduct credits and append the usage log after a successful transcription
    """

    def __init__(
        self,
        profile_repository: ProfileRepository,
        usage_repository: UsageLogRepository,
        credits_per_minute: int = CREDITS_PER_MINUTE,
    ):
        self._profiles = profile_repository
        self._usage = usage_repository
        self.credits_per_minute = credits_per_minute

    def calculate_cost(self, duration_seconds: Optional[float]) -> int:
        return calculate_credit_cost(duration_seconds, self.credits_per_minute)

    def ensure_sufficient(self, profile: Profile, cost: int) -> None:
        """
        Raises:
            InsufficientCreditsError: If the profile balance is below ``cost``
        """
        if profile.credits_remaining < cost:
            raise InsufficientCreditsError(
                credits_needed=cost,
                credits_remaining=profile.credits_remaining,
            )

    def settle(
        self,
        profile: Profile,
        cost: int,
        transcription_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Settlement:
        """
        Charge ``cost`` credits and record the usage.

        A failed or rejected deduction is logged and not raised: the
        transcript has already been stored and stays completed. Nothing is
        billed in that case, so no usage entry is written and the reported
        balance is re-read rather than computed.

        Args:
            profile: The profile being charged (balance as loaded)
            cost: Credits to deduct
            transcription_id: Related job
            metadata: Free-form details for the usage log

        Returns:
            Credits actually charged and the balance after settlement
        """
        try:
            new_balance = self._profiles.deduct_credits(profile.id, cost)
        except PersistenceError as e:
            logger.error("Failed to deduct credits: user=%s, cost=%d, error=%s", profile.id, cost, e)
            new_balance = None
        else:
            if new_balance is None:
                logger.error(
                    "Credit deduction rejected, balance no longer covers cost: user=%s, cost=%d",
                    profile.id,
                    cost,
                )

        if new_balance is None:
            return Settlement(credits_charged=0, credits_remaining=self._current_balance(profile))

        entry = UsageLogEntry(
            user_id=profile.id,
            transcription_id=transcription_id,
            action=UsageAction.TRANSCRIPTION,
            credits_used=cost,
            metadata=dict(metadata or {}),
        )
        try:
            self._usage.append(entry)
        except PersistenceError as e:
            logger.error("Failed to write usage log: user=%s, job=%s, error=%s", profile.id, transcription_id, e)

        logger.info(
            "Credits settled: user=%s, job=%s, cost=%d, remaining=%d",
            profile.id,
            transcription_id,
            cost,
            new_balance,
        )
        return Settlement(credits_charged=cost, credits_remaining=new_balance)

    def _current_balance(self, profile: Profile) -> int:
        """Stored balance, or the loaded one if it cannot be read."""
        try:
            current = self._profiles.get_profile(profile.id)
        except PersistenceError as e:
            logger.error("Failed to re-read balance: user=%s, error=%s", profile.id, e)
            return profile.credits_remaining
        if current is None:
            return profile.credits_remaining
        return current.credits_remaining
