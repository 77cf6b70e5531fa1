"""
Verification - submit/poll lifecycle of a single email verification
"""

from .job import PENDING_STATUSES, VerificationJob
from .models import (
    EMAIL_REQUIRED,
    JobOutcome,
    JobResult,
    PollState,
    VerificationMode,
    VerificationQuery,
    parse_try_again_at,
)

__all__ = [
    "VerificationJob",
    "PENDING_STATUSES",
    "EMAIL_REQUIRED",
    "JobOutcome",
    "JobResult",
    "PollState",
    "VerificationMode",
    "VerificationQuery",
    "parse_try_again_at",
]
