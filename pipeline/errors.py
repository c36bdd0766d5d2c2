from __future__ import annotations

from typing import Optional


class UploadError(Exception):
    """An upload that fails as a whole, before any entry is submitted."""

    status_code = 400

    def __init__(self, error: str, detail: Optional[str] = None) -> None:
        super().__init__(error if detail is None else f"{error}: {detail}")
        self.error = error
        self.detail = detail

    def to_payload(self) -> dict:
        payload = {"error": self.error}
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


class MissingFieldError(UploadError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}")
        self.field = field


class TooManyEntriesError(UploadError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            "Too many IPs",
            f"Fastly ACLs have a maximum limit of {limit:,} entries per ACL.",
        )
        self.count = count
        self.limit = limit


class ConfigurationError(UploadError):
    status_code = 500


__all__ = ["UploadError", "MissingFieldError", "TooManyEntriesError", "ConfigurationError"]
