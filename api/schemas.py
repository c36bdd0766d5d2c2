from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Short description of the failure.")
    detail: Optional[str] = Field(None, description="Additional context, when available.")


class ServiceListResponse(BaseModel):
    services: Any = Field(default_factory=list, description="Services as returned by Fastly.")


class VersionListResponse(BaseModel):
    service_id: str
    versions: Any = Field(default_factory=list, description="Service versions as returned by Fastly.")


class AclListResponse(BaseModel):
    service_id: str
    version_id: str
    acls: Any = Field(default_factory=list, description="ACLs as returned by Fastly.")


__all__ = [
    "ErrorResponse",
    "ServiceListResponse",
    "VersionListResponse",
    "AclListResponse",
]
