"""
daybook/api/subscription.py
Subscription API: current tier and limits, purchase-channel sync.
"""

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from daybook.api.deps import get_workspace
from daybook.features.sessions.registry import Workspace
from daybook.models.entitlement import UNLIMITED, Entitlement

router = APIRouter(prefix="/v1/subscription", tags=["subscription"])


class EntitlementSyncRequest(BaseModel):
    active_product_ids: List[str] = Field(default_factory=list)


class PurchaseRequest(BaseModel):
    product_id: str


def _status(workspace: Workspace) -> dict:
    entitlement = Entitlement.for_tier(workspace.session.tier)

    def _limit(value: int):
        return None if value == UNLIMITED else value

    return {
        "data": {
            "tier": entitlement.tier.value,
            "is_premium": entitlement.tier.value == "premium",
            "limits": {
                "daily_intentions": _limit(entitlement.max_daily_intentions),
                "yearly_goals": _limit(entitlement.max_yearly_goals),
                "debrief_words": _limit(entitlement.max_debrief_words),
            },
        }
    }


@router.get("")
async def get_subscription_endpoint(workspace: Workspace = Depends(get_workspace)):
    return _status(workspace)


@router.post("/sync")
async def sync_subscription_endpoint(request: EntitlementSyncRequest, workspace: Workspace = Depends(get_workspace)):
    """Re-resolve the tier from the purchase channel's active products."""
    await workspace.subscription.check_subscription_status(request.active_product_ids)
    return _status(workspace)


@router.post("/purchase")
async def purchase_endpoint(request: PurchaseRequest, workspace: Workspace = Depends(get_workspace)):
    await workspace.subscription.handle_purchase(request.product_id)
    return _status(workspace)
