"""
Core data types for the APS model viewer.
"""

import base64
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.config.config import ManifestStatus


def urnify(object_id: str) -> str:
    """Encode an OSS object id as a Model Derivative URN (URL-safe, unpadded)."""
    return base64.urlsafe_b64encode(object_id.encode("utf-8")).decode("ascii").rstrip("=")


@dataclass
class ModelReference:
    """A translated (or translating) design addressable by URN."""
    name: str
    urn: str

    @classmethod
    def from_object(cls, obj: Dict[str, Any]) -> "ModelReference":
        return cls(name=obj["objectKey"], urn=urnify(obj["objectId"]))


@dataclass
class Manifest:
    """Status snapshot of a translation job."""
    status: str
    progress: Optional[str] = None
    messages: List[Any] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            ManifestStatus.SUCCESS.value,
            ManifestStatus.FAILED.value,
            ManifestStatus.TIMEOUT.value
        )

    @property
    def succeeded(self) -> bool:
        return self.status == ManifestStatus.SUCCESS.value

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Manifest":
        return cls(
            status=payload.get("status"),
            progress=payload.get("progress"),
            messages=collect_messages(payload)
        )


def collect_messages(manifest: Dict[str, Any]) -> List[Any]:
    """Gather messages from each derivative followed by those of its direct children.

    Deeper descendants are not inspected.
    """
    messages: List[Any] = []
    for derivative in manifest.get("derivatives") or []:
        messages.extend(derivative.get("messages") or [])
        for child in derivative.get("children") or []:
            messages.extend(child.get("messages") or [])
    return messages


@dataclass
class AccessToken:
    """Bearer token issued by the APS authentication service."""
    access_token: str
    expires_in: int
    expires_at: float = 0.0

    # Tokens count as expired this many seconds before expires_at
    expiry_margin_seconds = 60

    def __post_init__(self):
        if not self.expires_at:
            self.expires_at = time.time() + self.expires_in

    @property
    def is_expired(self) -> bool:
        return time.time() >= self.expires_at - self.expiry_margin_seconds

    def remaining_seconds(self) -> int:
        return max(0, int(self.expires_at - time.time()))
