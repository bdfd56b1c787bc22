"""Wire schema for scannable URL items.

``get_item_schema()`` describes the response item as JSON Schema so clients
can introspect the endpoint without calling it.  ``project_item()`` maps an
internal :class:`~ampscan.validation.scannable_urls.ScannableURL` onto that
schema: unknown fields are dropped and malformed values are coerced to the
nearest valid value instead of failing the request.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

REST_BASE = "scannable-urls"


def is_absolute_uri(value: Any) -> bool:
    """True for absolute http(s) URLs."""
    if not isinstance(value, str) or not value:
        return False
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return url.is_absolute_url and url.scheme in ("http", "https") and bool(url.host)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

class ValidatedURLPost(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    edit_link: str


class ScannableURLItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    amp_url: str
    type: str
    label: str
    validated_url_post: Optional[ValidatedURLPost]
    validation_errors: Optional[list[Any]]
    stale: Optional[bool]

    @model_validator(mode="before")
    @classmethod
    def _fallback_amp_url(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and not is_absolute_uri(data.get("amp_url")):
            data = {**data, "amp_url": data.get("url")}
        return data

    @model_validator(mode="before")
    @classmethod
    def _absolute_edit_link(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        post = data.get("validated_url_post")
        if not isinstance(post, Mapping) or not is_absolute_uri(data.get("url")):
            return data
        link = post.get("edit_link")
        if isinstance(link, str) and not is_absolute_uri(link):
            resolved = str(httpx.URL(data["url"]).join(link))
            data = {**data, "validated_url_post": {**post, "edit_link": resolved}}
        return data

    @field_validator("type", "label", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("validation_errors", mode="before")
    @classmethod
    def _coerce_errors(cls, value: Any) -> Optional[list[Any]]:
        if value is None:
            return None
        if isinstance(value, Mapping):
            return list(value.values())
        if isinstance(value, (list, tuple)):
            return list(value)
        return []

    @field_validator("stale", mode="before")
    @classmethod
    def _coerce_stale(cls, value: Any) -> Optional[bool]:
        return None if value is None else bool(value)


def project_item(item: Any) -> dict[str, Any]:
    """Project an item onto the wire schema and return a JSON-ready dict."""
    data = item if isinstance(item, Mapping) else vars(item)
    return ScannableURLItem.model_validate(data).model_dump(mode="json")


# ---------------------------------------------------------------------------
# JSON Schema
# ---------------------------------------------------------------------------

def get_item_schema() -> dict[str, Any]:
    """Return the item schema, conforming to JSON Schema (draft-04)."""
    return {
        "$schema": "http://json-schema.org/draft-04/schema#",
        "title": f"amp-wp-{REST_BASE}",
        "type": "object",
        "properties": {
            "url": {
                "description": "URL",
                "type": "string",
                "format": "uri",
                "readonly": True,
                "context": ["view"],
            },
            "amp_url": {
                "description": "AMP URL",
                "type": "string",
                "format": "uri",
                "readonly": True,
                "context": ["view"],
            },
            "type": {
                "description": "Type",
                "type": "string",
                "readonly": True,
                "context": ["view"],
            },
            "label": {
                "description": "Label",
                "type": "string",
                "readonly": True,
                "context": ["view"],
            },
            "validated_url_post": {
                "description": "Validated URL post if previously scanned.",
                "type": ["object", "null"],
                "properties": {
                    "id": {"type": "integer"},
                    "edit_link": {"type": "string", "format": "uri"},
                },
                "readonly": True,
                "context": ["view"],
            },
            "validation_errors": {
                "description": "Validation errors for validated URL if previously scanned.",
                "type": ["array", "null"],
                "readonly": True,
                "context": ["view"],
            },
            "stale": {
                "description": "Whether the Validated URL post is stale.",
                "type": ["boolean", "null"],
                "readonly": True,
                "context": ["view"],
            },
        },
    }
