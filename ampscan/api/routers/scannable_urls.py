"""Scannable URL endpoints.

Routes
------
GET /amp/v1/scannable-urls          Scannable URLs with AMP URL and validation state
GET /amp/v1/scannable-urls/schema   JSON Schema describing one item
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ampscan.api.auth import require_validate_capability
from ampscan.config import settings
from ampscan.db.validated_urls import ValidatedURLStore
from ampscan.site.routing import PairedRouting
from ampscan.site.urls import SiteURLProvider
from ampscan.validation.scannable_urls import ScannableURLCorrelator
from ampscan.validation.schema import ScannableURLItem, get_item_schema

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_correlator(request: Request) -> ScannableURLCorrelator:
    """Wire the site's collaborators into a correlator for this request."""
    conn = request.app.state.db
    return ScannableURLCorrelator(
        provider=SiteURLProvider(conn),
        router=PairedRouting(),
        store=ValidatedURLStore(conn),
        max_workers=settings.correlator_workers,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[ScannableURLItem],
    dependencies=[Depends(require_validate_capability)],
)
def list_scannable_urls(
    correlator: ScannableURLCorrelator = Depends(get_correlator),
) -> list[dict[str, Any]]:
    """Return the scannable URLs.

    Besides the page URL, each item carries a page ``type`` (e.g. ``is_home``
    or ``is_search``), the URL of the corresponding AMP page (``amp_url``)
    and, if the URL was validated before, its errors and staleness.
    """
    return correlator.get_items()


@router.get("/schema")
def item_schema() -> dict[str, Any]:
    """Return the item schema, conforming to JSON Schema."""
    return get_item_schema()
