"""
models.py — Shared data structures for the alert relay.

Defines:
    • Location        — where the accident happened
    • Contact         — one person to notify (phone + display name)
    • AlertRequest    — a validated inbound alert
    • SendResult      — outcome of one provider call
    • DispatchResult  — per-contact delivery record
    • DispatchSummary — success / failure counts for a batch
    • AlertOutcome    — the response body for an accepted alert

═══════════════════════════════════════════════════════════════════════════
CONTACT INGESTION
═══════════════════════════════════════════════════════════════════════════

Clients may send a contact as a bare phone string or as an object:

    "4155551234"
    {"phone": "4155551234", "name": "Bob"}

Both forms become a Contact at the boundary; nothing past the request
parser sees the raw shape. A missing name falls back to
"Emergency Contact", a missing phone becomes "" (fails validation and is
reported per contact, never as a request error).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DEFAULT_CONTACT_NAME = "Emergency Contact"
DEFAULT_USER_NAME = "User"

Timestamp = Union[str, int, float, None]


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Contact:
    """A single alert recipient."""
    phone: str
    name: str = DEFAULT_CONTACT_NAME

    @classmethod
    def from_raw(cls, raw: Any) -> "Contact":
        """Build a Contact from either a bare phone value or a mapping."""
        if isinstance(raw, dict):
            phone = raw.get("phone")
            name = raw.get("name") or DEFAULT_CONTACT_NAME
        else:
            phone = raw
            name = DEFAULT_CONTACT_NAME
        if phone is None or isinstance(phone, bool):
            phone = ""
        return cls(phone=str(phone), name=str(name))


@dataclass
class AlertRequest:
    """An inbound alert that passed shape validation."""
    contacts: List[Contact]
    location: Location
    timestamp: Timestamp = None
    user_name: Optional[str] = None


@dataclass
class SendResult:
    """
    Outcome of one messaging-provider call.

    Attributes
    ----------
    success : bool
    sid : str | None
        Provider message identifier.
    status : str | None
        Provider-reported message status (queued, sent, ...).
    error : str | None
        Failure reason when success is False.
    """
    success: bool
    sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"success": self.success}
        if self.sid is not None:
            d["sid"] = self.sid
        if self.status is not None:
            d["status"] = self.status
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class DispatchResult:
    """Delivery record for one contact; ``phone`` is the number as submitted."""
    phone: str
    name: str
    success: bool
    sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_send(cls, contact: Contact, result: SendResult) -> "DispatchResult":
        return cls(
            phone=contact.phone,
            name=contact.name,
            success=result.success,
            sid=result.sid,
            status=result.status,
            error=result.error,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "phone": self.phone,
            "name": self.name,
            "success": self.success,
        }
        if self.sid is not None:
            d["sid"] = self.sid
        if self.status is not None:
            d["status"] = self.status
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class DispatchSummary:
    successful: int = 0
    failed: int = 0

    @property
    def message(self) -> str:
        return f"Alerts sent: {self.successful} successful, {self.failed} failed"


@dataclass(frozen=True)
class DedupDecision:
    fingerprint: str
    duplicate: bool


@dataclass
class AlertOutcome:
    """Batch-level result returned for every accepted alert."""
    results: List[DispatchResult] = field(default_factory=list)
    summary: DispatchSummary = field(default_factory=DispatchSummary)
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.summary.message,
            "results": [r.to_dict() for r in self.results],
            "timestamp": self.timestamp,
        }
