"""
Health and status reporting.

Two probes:
    • health — liveness: the process answers, with the current time
    • status — operational summary: provider configuration and feature flags
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict

from backend.app.core.config import Settings


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ServiceStatus:
    status: str = "operational"
    provider_configured: bool = False
    features: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "providerConfigured": self.provider_configured,
            "features": dict(self.features),
        }


def health_payload() -> Dict[str, Any]:
    return {"status": "ok", "timestamp": utc_timestamp()}


def status_payload(app_settings: Settings) -> Dict[str, Any]:
    """Build the /api/status body from the active settings."""
    report = ServiceStatus(
        provider_configured=app_settings.provider_configured,
        features={
            "emergencyAlerts": True,
            "testMessages": True,
            "rateLimiting": app_settings.RATE_LIMIT_ENABLED,
        },
    )
    return report.to_dict()
