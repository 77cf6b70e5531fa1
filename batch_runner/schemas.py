"""
Schemas for batch input and output records
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

RESULT_FIELD = "bounceban_result"
CANCELLED = "cancelled"


class Operation(str, Enum):
    """Operations a record may request"""

    VALIDATE_EMAIL = "validateEmail"


class BatchSummarySchema(BaseModel):
    """Summary printed after a batch run"""

    total: int = Field(..., ge=0)
    completed: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    cancelled: bool = False
    output_path: Optional[str] = None
