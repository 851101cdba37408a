"""
Conversation and verdict schemas.

Plain dataclasses for the records the monitor owns and passes around, plus a
strict pydantic model for the JSON verdict returned by the model-assisted
analyzer. A verdict that does not validate is discarded, never repaired.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator


MAX_REASON_LENGTH = 200


class Role(str, Enum):
    """Conversation message roles"""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One turn of conversation history"""
    role: Role
    content: str
    timestamp: int  # epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class Identity:
    """Optional name/role/context that personalizes analysis and generation"""
    name: str = ""
    role: str = ""
    context_file: str = ""


@dataclass(frozen=True)
class AnalysisContext:
    """Everything the analyzer may look at for a single cycle."""
    transcript: str
    previous_transcript: str = ""
    silence_ms: float = 0.0
    history: Tuple[Message, ...] = field(default_factory=tuple)
    name: str = ""
    role: str = ""
    context_file: str = ""

    @property
    def identity(self) -> Identity:
        return Identity(name=self.name, role=self.role, context_file=self.context_file)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass
class AnalysisResult:
    """Should-respond verdict with confidence (0.0 to 1.0) and a short reason"""
    should_respond: bool
    confidence: float
    reason: str

    def __post_init__(self):
        self.confidence = clamp(float(self.confidence))
        self.reason = str(self.reason)[:MAX_REASON_LENGTH]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """Build from a mapping using either snake_case or camelCase keys."""
        should_respond = data.get("should_respond", data.get("shouldRespond", False))
        return cls(
            should_respond=bool(should_respond),
            confidence=data.get("confidence", 0.0),
            reason=data.get("reason", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "should_respond": self.should_respond,
            "confidence": self.confidence,
            "reason": self.reason,
        }


class ModelVerdict(BaseModel):
    """Verdict JSON expected from the model-assisted analyzer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    should_respond: StrictBool = Field(alias="shouldRespond")
    confidence: float = Field(ge=0.0, le=1.0)
    reason: StrictStr = Field(min_length=1)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence_is_number(cls, value: Any) -> Any:
        # bool is an int subclass; "0.8" strings are not numbers either
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        if math.isnan(value):
            raise ValueError("confidence must not be NaN")
        return value

    @field_validator("reason")
    @classmethod
    def _reason_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reason must not be blank")
        return value

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(
            should_respond=self.should_respond,
            confidence=clamp(self.confidence),
            reason=self.reason[:MAX_REASON_LENGTH],
        )


def history_to_messages(history) -> list:
    """Convert history entries into provider message dicts, roles preserved."""
    return [message.to_dict() for message in history]
