"""
daybook/models/entitlement.py

Subscription tiers and the limits derived from them.

Limits are a pure function of the tier and are never stored.

Entitlement Keys:
- intentions.daily (int): intentions per calendar day
- goals.yearly (int): goals per calendar year (by start date)
- debrief.words (int): words in one day's debrief

Value Types:
- int: numeric limits (-1 = unlimited)
"""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict

UNLIMITED = -1


class Tier(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"


class Quota(str, Enum):
    DAILY_INTENTIONS = "intentions.daily"
    YEARLY_GOALS = "goals.yearly"
    DEBRIEF_WORDS = "debrief.words"


_TIER_LIMITS: Dict[Tier, Dict[Quota, int]] = {
    Tier.BASIC: {
        Quota.DAILY_INTENTIONS: 4,
        Quota.YEARLY_GOALS: 4,
        Quota.DEBRIEF_WORDS: 150,
    },
    Tier.PREMIUM: {
        Quota.DAILY_INTENTIONS: UNLIMITED,
        Quota.YEARLY_GOALS: UNLIMITED,
        Quota.DEBRIEF_WORDS: 300,
    },
}


class Entitlement(BaseModel):
    """The limits a tier grants."""
    model_config = ConfigDict(frozen=True)

    tier: Tier

    @classmethod
    def for_tier(cls, tier: Tier) -> "Entitlement":
        return cls(tier=Tier(tier))

    def limit_for(self, quota: Quota) -> int:
        return _TIER_LIMITS[self.tier][Quota(quota)]

    @property
    def max_daily_intentions(self) -> int:
        return self.limit_for(Quota.DAILY_INTENTIONS)

    @property
    def max_yearly_goals(self) -> int:
        return self.limit_for(Quota.YEARLY_GOALS)

    @property
    def max_debrief_words(self) -> int:
        return self.limit_for(Quota.DEBRIEF_WORDS)
