"""
daybook/features/entitlements/service.py

Entitlement gate: pure checks of (tier, existing count) against the tier's
limits. Nothing here does I/O or caches a limit; callers pass the tier they
just read from the session so an upgrade applies on the very next check.

Handles:
- Item quotas (intentions per day, goals per year)
- Debrief word ceiling (checked per edit and again before each write)
- Structured logs only (no metrics backend)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from daybook.core.errors import QuotaExceededError
from daybook.models.entitlement import UNLIMITED, Entitlement, Quota, Tier


logger = logging.getLogger(__name__)


class QuotaStatus(str, Enum):
    """Outcome of a gate check."""
    ALLOW = "ALLOW"
    DENY = "DENY"


@dataclass(frozen=True)
class QuotaCheck:
    status: QuotaStatus
    quota: Quota
    tier: Tier
    limit: int
    current: int
    remaining: Optional[int]  # None = unlimited

    @property
    def allowed(self) -> bool:
        return self.status == QuotaStatus.ALLOW


def count_words(text: str) -> int:
    """Words separated by runs of whitespace (spaces, tabs, newlines)."""
    return len(text.split())


def check_quota(tier: Tier, existing_count: int, quota: Quota) -> QuotaCheck:
    """Decide whether one more item may be created.

    ``existing_count`` items already in the bucket; reaching the limit denies.
    """
    tier = Tier(tier)
    limit = Entitlement.for_tier(tier).limit_for(quota)
    if limit == UNLIMITED:
        return QuotaCheck(QuotaStatus.ALLOW, Quota(quota), tier, limit, existing_count, None)

    if existing_count >= limit:
        logger.warning(
            "[entitlement] DENY",
            extra={
                "tier": tier.value,
                "quota": Quota(quota).value,
                "limit": limit,
                "current": existing_count,
            },
        )
        return QuotaCheck(QuotaStatus.DENY, Quota(quota), tier, limit, existing_count, 0)

    return QuotaCheck(
        QuotaStatus.ALLOW,
        Quota(quota),
        tier,
        limit,
        existing_count,
        limit - (existing_count + 1),
    )


def check_word_limit(word_count: int, tier: Tier) -> QuotaCheck:
    """Decide whether a draft of ``word_count`` words is within the ceiling.

    Unlike item quotas the ceiling itself is allowed: 150 words is fine on
    Basic, the 151st is rejected.
    """
    tier = Tier(tier)
    limit = Entitlement.for_tier(tier).max_debrief_words
    if limit != UNLIMITED and word_count > limit:
        logger.info(
            "[entitlement] word limit DENY",
            extra={"tier": tier.value, "limit": limit, "current": word_count},
        )
        return QuotaCheck(QuotaStatus.DENY, Quota.DEBRIEF_WORDS, tier, limit, word_count, 0)
    remaining = None if limit == UNLIMITED else limit - word_count
    return QuotaCheck(QuotaStatus.ALLOW, Quota.DEBRIEF_WORDS, tier, limit, word_count, remaining)


def enforce_quota(tier: Tier, existing_count: int, quota: Quota) -> QuotaCheck:
    """check_quota, raising QuotaExceededError on DENY."""
    result = check_quota(tier, existing_count, quota)
    if not result.allowed:
        raise QuotaExceededError(
            _quota_message(result),
            limit=result.limit,
            current=result.current,
        )
    return result


def enforce_word_limit(word_count: int, tier: Tier) -> QuotaCheck:
    """check_word_limit, raising QuotaExceededError on DENY."""
    result = check_word_limit(word_count, tier)
    if not result.allowed:
        raise QuotaExceededError(
            _quota_message(result),
            code="word_limit_exceeded",
            limit=result.limit,
            current=result.current,
        )
    return result


def _quota_message(result: QuotaCheck) -> str:
    if result.quota == Quota.DEBRIEF_WORDS:
        if result.tier == Tier.PREMIUM:
            return f"Unfortunately you have exceeded the {result.limit} word limit."
        return (
            "You have reached the maximum word limit for your subscription. "
            "Please upgrade to continue writing."
        )
    if result.quota == Quota.DAILY_INTENTIONS:
        return "You have reached your daily limit of intentions for basic subscription users."
    if result.quota == Quota.YEARLY_GOALS:
        return "You have reached your yearly limit of goals for basic subscription users."
    return f"Entitlement {result.quota.value} exceeded"
