"""Discovery of the URLs worth scanning for AMP validity.

One representative URL is picked per template type so that a scan covers
every template the site renders without walking the whole site.  Entries
are produced in a fixed order: home, singular content per post type, term
archives per taxonomy, author archives, the newest date archive, and the
search results page.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from ampscan.config import settings
from ampscan.db.content import latest_published_at, list_content, list_subtypes

# Template conditional used for each taxonomy's archive.
_TAXONOMY_TEMPLATES = {
    "category": "is_category",
    "post_tag": "is_tag",
}

_TAXONOMY_LABELS = {
    "category": "Category archives",
    "post_tag": "Tag archives",
}


def _join(base: str, path: str) -> str:
    return str(httpx.URL(base).join(path))


class SiteURLProvider:
    """Produce ``{url, type, label}`` entries from the site's content table."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        site_url: Optional[str] = None,
        limit_per_type: Optional[int] = None,
        supported_templates: Optional[list[str]] = None,
    ) -> None:
        self._conn = conn
        self.site_url = site_url or settings.site_url
        self.limit_per_type = settings.limit_per_type if limit_per_type is None else limit_per_type
        self.supported_templates = (
            settings.supported_templates if supported_templates is None else supported_templates
        )

    def is_template_supported(self, template: str) -> bool:
        return not self.supported_templates or template in self.supported_templates

    def get_entries(self) -> list[dict[str, Any]]:
        entries: list[dict[str, Any]] = []
        entries.extend(self._home_entries())
        entries.extend(self._singular_entries())
        entries.extend(self._term_entries())
        entries.extend(self._author_entries())
        entries.extend(self._date_entries())
        entries.extend(self._search_entries())
        return entries

    # ------------------------------------------------------------------
    # Template groups
    # ------------------------------------------------------------------

    def _home_entries(self) -> list[dict[str, Any]]:
        if not self.is_template_supported("is_home") and not self.is_template_supported("is_front_page"):
            return []
        return [{"url": self.site_url, "type": "is_home", "label": "Homepage"}]

    def _singular_entries(self) -> list[dict[str, Any]]:
        if not self.is_template_supported("is_singular"):
            return []
        entries = []
        for post_type in list_subtypes(self._conn, "post"):
            for item in list_content(self._conn, "post", post_type, limit=self.limit_per_type):
                entries.append({
                    "url": item.url,
                    "type": post_type,
                    "label": post_type.replace("_", " ").title(),
                })
        return entries

    def _term_entries(self) -> list[dict[str, Any]]:
        entries = []
        for taxonomy in list_subtypes(self._conn, "term"):
            template = _TAXONOMY_TEMPLATES.get(taxonomy, "is_tax")
            if not self.is_template_supported(template):
                continue
            label = _TAXONOMY_LABELS.get(taxonomy, f"{taxonomy.replace('_', ' ').title()} archives")
            for item in list_content(self._conn, "term", taxonomy, limit=self.limit_per_type):
                entries.append({"url": item.url, "type": template, "label": label})
        return entries

    def _author_entries(self) -> list[dict[str, Any]]:
        if not self.is_template_supported("is_author"):
            return []
        return [
            {"url": item.url, "type": "is_author", "label": "Author archive"}
            for item in list_content(self._conn, "user", limit=self.limit_per_type)
        ]

    def _date_entries(self) -> list[dict[str, Any]]:
        if not self.is_template_supported("is_date"):
            return []
        newest = latest_published_at(self._conn)
        if newest is None:
            return []
        year = datetime.fromtimestamp(newest, tz=timezone.utc).year
        return [{"url": _join(self.site_url, f"{year}/"), "type": "is_date", "label": "Date archive"}]

    def _search_entries(self) -> list[dict[str, Any]]:
        if not self.is_template_supported("is_search"):
            return []
        url = httpx.URL(self.site_url).copy_merge_params({"s": "example"})
        return [{"url": str(url), "type": "is_search", "label": "Search results page"}]
