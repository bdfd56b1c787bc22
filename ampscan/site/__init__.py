"""Site collaborators — URL discovery and paired AMP routing."""

from ampscan.site.routing import PairedRouting, RoutingError
from ampscan.site.urls import SiteURLProvider

__all__ = ["PairedRouting", "RoutingError", "SiteURLProvider"]
