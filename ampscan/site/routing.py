"""Paired AMP URL routing.

On an AMP-canonical site (``standard`` template mode) every URL is already
the AMP URL.  On a paired site the AMP variant is derived from the canonical
URL using one of the supported URL structures:

    query_var            https://example.com/post/  ->  https://example.com/post/?amp=1
    path_suffix          https://example.com/post/  ->  https://example.com/post/amp/
    legacy_transitional  https://example.com/post/  ->  https://example.com/post/?amp
"""

from __future__ import annotations

from typing import Optional

import httpx

from ampscan.config import settings

PAIRED_URL_STRUCTURES = ("query_var", "path_suffix", "legacy_transitional")


class RoutingError(Exception):
    """Raised when an AMP URL cannot be derived from a canonical URL."""


class PairedRouting:
    """Maps canonical URLs to their AMP counterparts."""

    def __init__(
        self,
        amp_canonical: Optional[bool] = None,
        structure: Optional[str] = None,
        query_var: Optional[str] = None,
    ) -> None:
        self.amp_canonical = settings.is_amp_canonical if amp_canonical is None else amp_canonical
        self.structure = structure or settings.paired_url_structure
        self.query_var = query_var or settings.amp_query_var
        if self.structure not in PAIRED_URL_STRUCTURES:
            raise ValueError(f"Unknown paired URL structure: {self.structure!r}")

    def resolve(self, url: str) -> str:
        """Return the AMP URL for *url*.

        Raises:
            RoutingError: If *url* cannot be parsed as an absolute URL.
        """
        if self.amp_canonical:
            return url
        return self.add_endpoint(url)

    def add_endpoint(self, url: str) -> str:
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise RoutingError(f"Cannot route {url!r}: {exc}") from exc
        if not parsed.is_absolute_url:
            raise RoutingError(f"Cannot route relative URL {url!r}")

        if self.structure == "path_suffix":
            path = parsed.path if parsed.path.endswith("/") else parsed.path + "/"
            return str(parsed.copy_with(path=f"{path}{self.query_var}/"))

        if self.structure == "legacy_transitional":
            query = parsed.query.decode("ascii")
            query = f"{query}&{self.query_var}" if query else self.query_var
            return str(parsed.copy_with(query=query.encode("ascii")))

        return str(parsed.copy_merge_params({self.query_var: "1"}))
