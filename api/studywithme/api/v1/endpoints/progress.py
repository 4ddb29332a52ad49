"""
XP progress endpoints.
"""
from fastapi import APIRouter, Depends

from studywithme.api.v1.dependencies import get_reward_service
from studywithme.schemas.progress import XPLedger
from studywithme.services.reward_service import RewardService

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("/xp", response_model=XPLedger)
async def get_xp(service: RewardService = Depends(get_reward_service)):
    """Get total XP and the award history."""
    return service.get_ledger()
