"""
Shared Pydantic schemas used across the ACL upload pipeline.
"""
from __future__ import annotations

from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

MALFORMED_ADDRESS = "malformed address"


def invalid_prefix_reason(max_prefix: int) -> str:
    return f"invalid CIDR prefix (must be 0-{max_prefix})"


class EntrySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str = Field(..., description="Line exactly as read from the upload, used for reporting")
    negated: bool = Field(False, description="True when the line began with '!'")
    address: str = Field(..., description="IP literal without any '/prefix'")
    prefix: Optional[int] = Field(None, description="CIDR prefix length, only when given")

    @property
    def is_cidr(self) -> bool:
        return self.prefix is not None


class ValidEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: EntrySpec

    @property
    def valid(self) -> bool:
        return True

    @property
    def original(self) -> str:
        return self.entry.original


class InvalidEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str = Field(..., description="Line exactly as read from the upload")
    reason: str = Field(..., description="Why the line was rejected")

    @property
    def valid(self) -> bool:
        return False


ValidationOutcome = Union[ValidEntry, InvalidEntry]


class SubmissionResult(BaseModel):
    original: str = Field(..., description="Line exactly as read from the upload")
    status: Union[int, Literal["invalid", "error"]] = Field(
        ..., description="Upstream HTTP status, or 'invalid' / 'error'"
    )
    ok: bool = Field(False, description="True when the upstream accepted the entry")
    response: Optional[Any] = Field(None, description="Decoded upstream response body")
    error: Optional[str] = Field(None, description="Validation reason or network failure")


class UploadReport(BaseModel):
    success: bool = True
    processed: int = Field(..., description="Entries attempted, valid and invalid")
    results: List[SubmissionResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def invalid(self) -> int:
        return sum(1 for r in self.results if r.status == "invalid")

    @property
    def failed(self) -> int:
        return self.processed - self.succeeded - self.invalid
