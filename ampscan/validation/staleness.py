"""Staleness of stored validation results.

A validation result goes stale when the content it covers, or the site
environment the validator ran against, has changed since it was captured.
The check is a pure function of the record, the current environment
fingerprint and the current state of the record's content, so it is cheap
enough to run for every URL on every request.

Reasons are checked in priority order and the first match wins:

    content  — the queried object's revision moved on since validation, or
               it was deleted
    theme    — active theme (stylesheet, template, version) changed
    plugins  — a plugin was activated, deactivated or updated
    options  — validation-relevant settings changed
    sources  — a recorded block type was disabled, or the global
               stylesheet changed
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ampscan.db.models import Content, EnvironmentFingerprint, ValidationRecord

STALENESS_REASONS = ("content", "theme", "plugins", "options", "sources")

_THEME_KEYS = ("stylesheet", "template", "version")


def _content_changed(record: ValidationRecord, content: Optional[Content]) -> bool:
    if record.queried_object is None:
        return False
    if content is None:
        return True
    if record.content_revision is not None:
        return content.revision != record.content_revision
    # Legacy rows carry no revision.
    return content.modified_at > record.validated_at


def _theme_changed(captured: EnvironmentFingerprint, current: EnvironmentFingerprint) -> bool:
    return any(captured.theme.get(k) != current.theme.get(k) for k in _THEME_KEYS)


def _plugins_changed(captured: EnvironmentFingerprint, current: EnvironmentFingerprint) -> bool:
    return captured.plugins != current.plugins


def _options_changed(captured: EnvironmentFingerprint, current: EnvironmentFingerprint) -> bool:
    return captured.options != current.options


def _block_names(sources: dict[str, Any]) -> set[str]:
    blocks = sources.get("blocks")
    if not isinstance(blocks, list):
        return set()
    return {b for b in blocks if isinstance(b, str)}


def _sources_changed(captured: EnvironmentFingerprint, current: EnvironmentFingerprint) -> bool:
    recorded_blocks = _block_names(captured.sources)
    enabled_blocks = _block_names(current.sources)
    if not recorded_blocks <= enabled_blocks:
        return True
    recorded_styles = captured.sources.get("global_styles")
    if recorded_styles is not None:
        return recorded_styles != current.sources.get("global_styles")
    return False


_ENVIRONMENT_CHECKS: list[tuple[str, Callable[[EnvironmentFingerprint, EnvironmentFingerprint], bool]]] = [
    ("theme", _theme_changed),
    ("plugins", _plugins_changed),
    ("options", _options_changed),
    ("sources", _sources_changed),
]


def get_staleness(
    record: ValidationRecord,
    environment: EnvironmentFingerprint,
    content: Optional[Content],
) -> Optional[str]:
    """Return the first reason *record* is stale, or ``None`` if it is fresh.

    Args:
        record: Stored validation result.
        environment: Current environment fingerprint.
        content: Current state of the record's queried object; ``None``
            when it no longer exists.  Ignored for records without a
            queried object (home, archives, search).

    Records stored without a fingerprint are judged on content alone.
    """
    if _content_changed(record, content):
        return "content"

    captured = record.environment
    if captured is None:
        return None

    for reason, changed in _ENVIRONMENT_CHECKS:
        if changed(captured, environment):
            return reason
    return None


def is_stale(
    record: ValidationRecord,
    environment: EnvironmentFingerprint,
    content: Optional[Content],
) -> bool:
    return get_staleness(record, environment, content) is not None
