from __future__ import annotations

import structlog
from fastapi import HTTPException, Request
from sqlalchemy.exc import InterfaceError, OperationalError

from app.core.config import get_settings
from app.core.errors import (
    CheckpointOrderError,
    CheckpointOutOfRangeError,
    ConcurrencyConflictError,
    InsufficientCoinsError,
    InsufficientEnergyError,
    InvalidArgumentError,
    NotFoundError,
    QuestEngineError,
    SessionClosedError,
    StorageUnavailableError,
)
from app.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

ROUTE_ERRORS = (QuestEngineError, SessionClosedError, OperationalError, InterfaceError)


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.internal_api_trusted_proxies)

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning("internal_api_auth_failed", reason="invalid_token", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if settings.internal_api_allowlist and not is_client_ip_allowed(
        client_ip=client_ip, allowlist=settings.internal_api_allowlist
    ):
        logger.warning("internal_api_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _as_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error("storage_unavailable", error_type=type(exc).__name__)
        exc = StorageUnavailableError(str(exc))

    if isinstance(exc, InsufficientEnergyError):
        return HTTPException(
            status_code=402,
            detail={
                "code": "E_INSUFFICIENT_ENERGY",
                "required": exc.required,
                "available": exc.available,
            },
        )
    if isinstance(exc, InsufficientCoinsError):
        return HTTPException(
            status_code=402,
            detail={
                "code": "E_INSUFFICIENT_COINS",
                "required": exc.required,
                "available": exc.available,
            },
        )
    if isinstance(exc, InvalidArgumentError):
        return HTTPException(status_code=422, detail={"code": "E_INVALID_ARGUMENT", "message": str(exc)})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail={"code": "E_NOT_FOUND", "message": str(exc)})
    if isinstance(exc, CheckpointOutOfRangeError):
        return HTTPException(
            status_code=403,
            detail={
                "code": "E_OUT_OF_RANGE",
                "distance_m": round(exc.distance_m, 1),
                "radius_m": exc.radius_m,
            },
        )
    if isinstance(exc, CheckpointOrderError):
        return HTTPException(status_code=409, detail={"code": "E_CHECKPOINT_ORDER"})
    if isinstance(exc, SessionClosedError):
        return HTTPException(status_code=409, detail={"code": "E_SESSION_CLOSED"})
    if isinstance(exc, ConcurrencyConflictError):
        return HTTPException(status_code=409, detail={"code": "E_CONFLICT"})
    if isinstance(exc, StorageUnavailableError):
        return HTTPException(status_code=503, detail={"code": "E_STORAGE_UNAVAILABLE"})

    logger.error("unmapped_engine_error", error_type=type(exc).__name__)
    return HTTPException(status_code=500, detail={"code": "E_INTERNAL"})
