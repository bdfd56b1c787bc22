"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Optional


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass
class Content:
    id: int
    object_type: str
    subtype: str
    title: str
    url: str
    status: str
    published_at: int
    modified_at: int
    revision: int


@dataclass(frozen=True)
class QueriedObject:
    """The piece of content a validated URL resolved to."""

    type: str
    id: int


@dataclass
class EnvironmentFingerprint:
    """Site state the validator depends on, captured or current."""

    theme: dict[str, Any] = field(default_factory=dict)
    plugins: dict[str, str] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)
    sources: dict[str, Any] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, data: Optional[str]) -> Optional[EnvironmentFingerprint]:
        """Decode a stored fingerprint; ``None`` when absent or unreadable.

        Members that are not JSON objects decode as empty.
        """
        if not data:
            return None
        try:
            raw = json.loads(data)
        except json.JSONDecodeError:
            return None
        if not isinstance(raw, dict):
            return None
        return cls(**{k: _as_dict(raw.get(k)) for k in ("theme", "plugins", "options", "sources")})


@dataclass
class ValidationRecord:
    id: int
    url: str
    errors: str
    queried_object: Optional[QueriedObject]
    validated_at: int
    environment: Optional[EnvironmentFingerprint]
    content_revision: Optional[int] = None
