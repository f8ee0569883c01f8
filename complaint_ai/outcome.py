"""Result type for the external-call pipelines: Ok(value) or Failed(reason).

Internal steps return one of these instead of raising; the public operations
(analyze, assess_credibility, answer, ...) turn a Failed into their fallback.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureReason(str, Enum):
    NOT_CONFIGURED = "not_configured"  # no credential / store: expected, not an error
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"  # unparseable or empty response
    INVALID = "invalid"  # parsed, but failed schema or range checks


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    reason: FailureReason
    detail: str = ""


Result = Union[Ok[T], Failed]
