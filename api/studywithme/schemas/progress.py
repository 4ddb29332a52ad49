"""
XP ledger schemas.
"""
from pydantic import BaseModel, Field
from typing import List


class XPEvent(BaseModel):
    """One reward signal received from the review or quiz engines."""
    amount: int
    reason: str
    awarded_at: int  # epoch ms


class XPLedger(BaseModel):
    """Accumulated XP and the history of awards."""
    total: int = 0
    history: List[XPEvent] = Field(default_factory=list)
