"""
FastAPI routes: emergency alert relay.

Provides endpoints to:
    POST /api/send-alert     — relay an accident alert to every contact
    POST /api/test-message   — send the test template to one number
    GET  /api/health         — liveness probe
    GET  /api/status         — provider configuration and feature flags
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from backend.app.alerts.alert_service import AlertService
from backend.app.api.schemas import (
    AlertOutcomeResponse,
    AlertRequestBody,
    HealthResponse,
    StatusResponse,
    TestMessageRequest,
    TestMessageResponse,
)
from backend.app.core.config import Settings
from backend.app.core.errors import AlertRelayError, InternalServerError
from backend.app.core.health import health_payload, status_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["alert-relay"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_alert_service(request: Request) -> AlertService:
    """The process-wide AlertService created in the app lifespan."""
    return request.app.state.alert_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health():
    return health_payload()


@router.post(
    "/send-alert",
    response_model=AlertOutcomeResponse,
    response_model_exclude_none=True,
    summary="Relay an emergency alert",
    description=(
        "Validates the request, suppresses duplicate submissions, then "
        "messages each contact in order and reports a per-contact breakdown."
    ),
)
async def send_alert(
    body: Optional[AlertRequestBody] = Body(None),
    service: AlertService = Depends(get_alert_service),
):
    payload = body.model_dump() if body is not None else {}
    try:
        outcome = await service.send_alert(payload)
    except AlertRelayError:
        raise
    except Exception as exc:
        logger.exception("Server error while relaying alert: %s", exc)
        raise InternalServerError("Internal server error") from exc
    return outcome.to_dict()


@router.post(
    "/test-message",
    response_model=TestMessageResponse,
    summary="Send a test message",
)
async def send_test_message(
    body: Optional[TestMessageRequest] = Body(None),
    service: AlertService = Depends(get_alert_service),
):
    request = body or TestMessageRequest()
    try:
        return await service.send_test_message(request.phone, request.name)
    except AlertRelayError:
        raise
    except Exception as exc:
        logger.exception("Test message failed: %s", exc)
        raise InternalServerError("Failed to send test message") from exc


@router.get("/status", response_model=StatusResponse, summary="Service status")
async def status(app_settings: Settings = Depends(get_app_settings)):
    return status_payload(app_settings)
