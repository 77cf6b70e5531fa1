"""
Verification domain models
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import ValidationError

EMAIL_REQUIRED = "Email address is required"


class VerificationMode(str, Enum):
    """Verification strategy requested from the API"""

    REGULAR = "regular"
    DEEPVERIFY = "deepverify"


class VerificationQuery(BaseModel):
    """Query parameters for a single verification submit call"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str = Field(..., min_length=1)
    mode: VerificationMode = VerificationMode.REGULAR
    disable_catchall_verify: Literal["0", "1"] = "0"
    webhook_url: Optional[str] = Field(default=None, alias="webhookUrl")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("disable_catchall_verify", mode="before")
    @classmethod
    def coerce_flag(cls, v):
        # Accept booleans and integers from loosely typed inputs
        if isinstance(v, bool):
            return "1" if v else "0"
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("webhook_url", mode="before")
    @classmethod
    def blank_webhook(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "VerificationQuery":
        """
        Build a query from an input record

        Raises:
            ValidationError: If the email is missing or an override is invalid
        """
        email = record.get("email")
        if email is None or not str(email).strip():
            raise ValidationError(EMAIL_REQUIRED, field="email")

        data: Dict[str, Any] = {"email": str(email)}
        for key in ("mode", "disable_catchall_verify"):
            if record.get(key) not in (None, ""):
                data[key] = record[key]
        webhook = record.get("webhookUrl") or record.get("url")
        if webhook:
            data["webhook_url"] = webhook

        try:
            return cls(**data)
        except PydanticValidationError as e:
            errors = e.errors()
            message = "; ".join(
                f"{'.'.join(str(part) for part in err.get('loc', []))}: {err.get('msg', '')}" for err in errors
            )
            raise ValidationError(f"Invalid verification input: {message}") from e

    def to_params(self) -> Dict[str, str]:
        """Query string for the submit endpoint"""
        params = {
            "email": self.email,
            "mode": self.mode.value,
            "disable_catchall_verify": self.disable_catchall_verify,
        }
        if self.webhook_url:
            params["url"] = self.webhook_url
        return params


class JobOutcome(str, Enum):
    """Terminal state of a verification job"""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobResult:
    """Result of one verification job: the remote payload or an error"""

    index: int
    outcome: JobOutcome
    payload: Any = None
    error: Optional[str] = None

    @classmethod
    def completed(cls, index: int, payload: Any) -> "JobResult":
        return cls(index=index, outcome=JobOutcome.COMPLETED, payload=payload)

    @classmethod
    def failed(cls, index: int, error: str) -> "JobResult":
        return cls(index=index, outcome=JobOutcome.FAILED, error=error)

    @property
    def is_completed(self) -> bool:
        return self.outcome == JobOutcome.COMPLETED

    def to_output(self) -> Any:
        """Value stored under ``bounceban_result`` in the output record"""
        if self.is_completed:
            return self.payload
        return {"error": self.error}


@dataclass
class PollState:
    """Progress of a pending verification task"""

    task_id: str
    next_eligible_at: float
    attempts_made: int = 0

    def record_attempt(self, next_eligible_at: float) -> None:
        self.attempts_made += 1
        self.next_eligible_at = next_eligible_at


def parse_try_again_at(value: Any, now: float) -> float:
    """
    Convert a ``try_again_at`` value to epoch seconds

    Accepts epoch seconds, epoch milliseconds, numeric strings and ISO-8601
    timestamps. Missing or unreadable values mean "now".
    """
    if value is None or isinstance(value, bool):
        return now

    if isinstance(value, (int, float)):
        timestamp = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            timestamp = float(value)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return now
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.timestamp()
    else:
        return now

    # Millisecond timestamps are three orders of magnitude larger
    if timestamp > 1e11:
        timestamp /= 1000
    return timestamp
