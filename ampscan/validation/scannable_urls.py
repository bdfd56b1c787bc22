"""Correlation of scannable URLs with their AMP URLs and validation results.

Three independent sources are merged into one item per URL:

    URLProvider      candidate ``{url, type, label}`` entries, in display order
    PairedURLRouter  canonical URL -> AMP URL
    ValidationStore  canonical URL -> latest validation record (or none)

Bad provider entries are dropped, unreadable stored errors degrade to an
empty list, and routing failures fall back to the canonical URL; none of
them abort the batch.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ampscan.db.models import ValidationRecord
from ampscan.validation.schema import is_absolute_uri, project_item

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

class URLProvider(Protocol):
    def get_entries(self) -> list[Mapping[str, Any]]: ...


class PairedURLRouter(Protocol):
    def resolve(self, url: str) -> str: ...


class ValidationStore(Protocol):
    def lookup(self, url: str) -> Optional[ValidationRecord]: ...

    def is_stale(self, record: ValidationRecord) -> bool: ...

    def edit_link(self, record: ValidationRecord) -> str: ...


# ---------------------------------------------------------------------------
# Item model
# ---------------------------------------------------------------------------

@dataclass
class ScannableURL:
    url: str
    type: Any
    label: Any
    amp_url: str
    validation_errors: Optional[list[Any]] = None
    validated_url_post: Optional[dict[str, Any]] = None
    stale: Optional[bool] = None

    def __post_init__(self) -> None:
        triple = (self.validation_errors, self.validated_url_post, self.stale)
        if any(v is None for v in triple) and not all(v is None for v in triple):
            raise ValueError(
                "validation_errors, validated_url_post and stale must be set together"
            )


def parse_validation_errors(raw: Any) -> list[Any]:
    """Decode a stored error list into the errors' ``data`` payloads.

    Stored errors look like ``[{"term_slug": ..., "data": {...}}, ...]``.
    Anything that is not a JSON list yields ``[]``; list members without a
    ``data`` key are skipped.
    """
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Stored validation errors are not valid JSON; treating as empty")
        return []
    if not isinstance(data, list):
        logger.warning("Stored validation errors are not a list; treating as empty")
        return []
    return [item["data"] for item in data if isinstance(item, Mapping) and "data" in item]


# ---------------------------------------------------------------------------
# Correlator
# ---------------------------------------------------------------------------

class ScannableURLCorrelator:
    """Build the scannable URL list from its three sources."""

    def __init__(
        self,
        provider: URLProvider,
        router: PairedURLRouter,
        store: ValidationStore,
        max_workers: int = 1,
    ) -> None:
        self.provider = provider
        self.router = router
        self.store = store
        self.max_workers = max(1, max_workers)

    def list_scannable_urls(self) -> list[ScannableURL]:
        """Return one item per usable provider entry, in provider order."""
        entries = list(self.provider.get_entries())
        if self.max_workers > 1 and len(entries) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                items = list(pool.map(self.prepare_item, entries))
        else:
            items = [self.prepare_item(entry) for entry in entries]
        return [item for item in items if item is not None]

    def get_items(self) -> list[dict[str, Any]]:
        """Scannable URLs projected onto the response schema."""
        return [project_item(item) for item in self.list_scannable_urls()]

    def prepare_item(self, entry: Any) -> Optional[ScannableURL]:
        """Merge one provider entry with routing and validation state.

        Returns ``None`` when the entry has no usable URL.
        """
        if not isinstance(entry, Mapping) or not is_absolute_uri(entry.get("url")):
            logger.warning("Dropping provider entry without a usable URL: %r", entry)
            return None

        url = entry["url"]
        item = ScannableURL(
            url=url,
            type=entry.get("type"),
            label=entry.get("label"),
            amp_url=self._resolve_amp_url(url),
        )

        record = self.store.lookup(url)
        if record is None:
            return item

        return ScannableURL(
            url=item.url,
            type=item.type,
            label=item.label,
            amp_url=item.amp_url,
            validation_errors=parse_validation_errors(record.errors),
            validated_url_post={"id": record.id, "edit_link": self.store.edit_link(record)},
            stale=self.store.is_stale(record),
        )

    def _resolve_amp_url(self, url: str) -> str:
        try:
            amp_url = self.router.resolve(url)
        except Exception as exc:
            logger.warning("AMP URL routing failed for %s (%s); using canonical URL", url, exc)
            return url
        if not is_absolute_uri(amp_url):
            logger.warning("Router returned unusable AMP URL %r for %s", amp_url, url)
            return url
        return amp_url
