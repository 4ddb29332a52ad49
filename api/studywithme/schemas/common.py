"""
Shared response schemas.
"""
from pydantic import BaseModel


class OperationResult(BaseModel):
    """Outcome of a mutating operation that has no entity to return."""
    success: bool
    message: str
