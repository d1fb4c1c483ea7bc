"""
Pydantic schemas for the alert relay API.

Request bodies are deliberately permissive: shape errors must surface as
the relay's own 400 messages ("No contacts provided", "Invalid location
data"), so field checks happen in alert_service.parse_alert_request
rather than in pydantic.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class AlertRequestBody(BaseModel):
    """Inbound accident alert."""
    model_config = ConfigDict(extra="allow")

    contacts: Any = Field(
        None,
        description="Phone strings or {phone, name} objects",
        examples=[[{"phone": "4155551234", "name": "Bob"}, "+442079460958"]],
    )
    location: Any = Field(
        None,
        description="{lat, lng} in decimal degrees",
        examples=[{"lat": 37.422, "lng": -122.084}],
    )
    timestamp: Any = Field(
        None,
        description="Epoch milliseconds or ISO-8601 string",
        examples=[1700000000000],
    )
    userName: Optional[Any] = Field(None, examples=["Alice"])


class TestMessageRequest(BaseModel):
    """Request body for a one-off test message."""
    phone: Optional[Union[str, int]] = Field(None, examples=["+14155551234"])
    name: Optional[str] = Field(None, examples=["Bob"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class DispatchResultOut(BaseModel):
    phone: str
    name: str
    success: bool
    sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


class AlertOutcomeResponse(BaseModel):
    success: bool = True
    message: str
    results: List[DispatchResultOut]
    timestamp: str


class TestMessageResponse(BaseModel):
    success: bool
    message: str
    details: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class StatusResponse(BaseModel):
    status: str
    providerConfigured: bool
    features: Dict[str, bool]
