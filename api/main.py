from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

import aiohttp
import yaml
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models.schemas import UploadReport
from pipeline.engine import UploadOrchestrator
from pipeline.errors import ConfigurationError, UploadError
from pipeline.fastly_client import MISSING_KEY_MESSAGE, FastlyClient, FastlyResponse
from utils.config_loader import UploaderSettings, load_settings
from utils.logger import get_logger

from .schemas import AclListResponse, ErrorResponse, ServiceListResponse, VersionListResponse


api_logger = get_logger("api.app", "INFO", "api.log")

app = FastAPI(
    title="Fastly ACL Dashboard API",
    version="1.0.0",
    description=(
        "Browse Fastly services, versions and ACLs, and bulk-upload IP/CIDR "
        "entries from a text file into an ACL."
    ),
)


def _cors_origins() -> List[str]:
    # Requests report a broken config; importing the app still succeeds.
    try:
        return load_settings().cors_origins
    except (OSError, ValueError, yaml.YAMLError) as exc:
        api_logger.error("Could not load settings for CORS, using defaults: %s", exc)
        return UploaderSettings().cors_origins


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_settings() -> UploaderSettings:
    # Read on every request so the credential is never cached in the process.
    try:
        return load_settings()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError("Invalid configuration", str(exc)) from exc


def get_client_factory() -> Callable[..., FastlyClient]:
    return FastlyClient


def get_orchestrator(
    settings: UploaderSettings = Depends(get_settings),
    client_factory: Callable[..., FastlyClient] = Depends(get_client_factory),
) -> UploadOrchestrator:
    return UploadOrchestrator(settings, client_factory=client_factory)


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    api_logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _error(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True),
    )


async def _proxy_get(
    settings: UploaderSettings,
    client_factory: Callable[..., FastlyClient],
    call: Callable[[FastlyClient], Awaitable[FastlyResponse]],
    default_error: str,
):
    """Run one read call against Fastly; returns the body or an error response."""
    if not settings.api_key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    try:
        async with client_factory(
            settings.api_key,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            log_level=settings.log_level,
        ) as client:
            resp = await call(client)
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        api_logger.error("Fastly request failed: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Unexpected error while contacting Fastly", str(exc))

    if not resp.ok:
        return _error(resp.status, resp.message or default_error)
    return resp.body


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/health", tags=["system"])
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Browsing (read-only proxies)
# ---------------------------------------------------------------------------
@app.get(
    "/fastly/services",
    response_model=ServiceListResponse,
    responses=ERROR_RESPONSES,
    tags=["fastly"],
)
async def list_services_endpoint(
    settings: UploaderSettings = Depends(get_settings),
    client_factory: Callable[..., FastlyClient] = Depends(get_client_factory),
):
    body = await _proxy_get(settings, client_factory, lambda c: c.list_services(), "Failed to fetch services")
    if isinstance(body, JSONResponse):
        return body
    return ServiceListResponse(services=[] if body is None else body)


@app.get(
    "/fastly/service/{service_id}/version",
    response_model=VersionListResponse,
    responses=ERROR_RESPONSES,
    tags=["fastly"],
)
async def list_versions_endpoint(
    service_id: str,
    settings: UploaderSettings = Depends(get_settings),
    client_factory: Callable[..., FastlyClient] = Depends(get_client_factory),
):
    body = await _proxy_get(
        settings,
        client_factory,
        lambda c: c.list_versions(service_id),
        "Failed to fetch versions from Fastly",
    )
    if isinstance(body, JSONResponse):
        return body
    return VersionListResponse(service_id=service_id, versions=[] if body is None else body)


@app.get(
    "/fastly/service/{service_id}/version/{version_id}/acl",
    response_model=AclListResponse,
    responses=ERROR_RESPONSES,
    tags=["fastly"],
)
async def list_acls_endpoint(
    service_id: str,
    version_id: str,
    settings: UploaderSettings = Depends(get_settings),
    client_factory: Callable[..., FastlyClient] = Depends(get_client_factory),
):
    body = await _proxy_get(
        settings,
        client_factory,
        lambda c: c.list_acls(service_id, version_id),
        "Failed to fetch ACLs from Fastly",
    )
    if isinstance(body, JSONResponse):
        return body
    return AclListResponse(service_id=service_id, version_id=version_id, acls=[] if body is None else body)


# ---------------------------------------------------------------------------
# Bulk upload
# ---------------------------------------------------------------------------
@app.post(
    "/fastly/upload",
    response_model=UploadReport,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    tags=["upload"],
)
async def upload_endpoint(
    serviceId: Optional[str] = Form(None),
    aclId: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    comment: Optional[str] = Form(None),
    orchestrator: UploadOrchestrator = Depends(get_orchestrator),
):
    try:
        content = await file.read() if file is not None else None
        return await orchestrator.run(serviceId, aclId, content, comment)
    except UploadError:
        raise
    except Exception as exc:  # noqa: BLE001
        api_logger.exception("Bulk upload failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc))
