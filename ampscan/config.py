"""Centralised settings for the ampscan service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_list(key: str, default: str = "") -> list[str]:
    raw = os.environ.get(key, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def _parse_api_tokens(raw: str) -> dict[str, frozenset[str]]:
    """Parse ``token:cap1|cap2,token2:cap`` into a token → capabilities map.

    A token listed without capabilities is authenticated but holds none.
    """
    tokens: dict[str, frozenset[str]] = {}
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        token, _, caps = part.partition(":")
        tokens[token.strip()] = frozenset(c.strip() for c in caps.split("|") if c.strip())
    return tokens


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("AMPSCAN_WORKSPACE", Path.home() / ".ampscan_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "site.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Site
    # ------------------------------------------------------------------
    site_url: str = field(
        default_factory=lambda: os.environ.get("AMPSCAN_SITE_URL", "https://example.com/")
    )
    admin_url: str = field(
        default_factory=lambda: os.environ.get(
            "AMPSCAN_ADMIN_URL", "https://example.com/wp-admin/"
        )
    )

    # ------------------------------------------------------------------
    # AMP routing
    # ------------------------------------------------------------------
    # standard = AMP-canonical; transitional / reader = paired
    template_mode: str = field(
        default_factory=lambda: os.environ.get("AMPSCAN_TEMPLATE_MODE", "standard")
    )
    paired_url_structure: str = field(
        default_factory=lambda: os.environ.get("AMPSCAN_PAIRED_URL_STRUCTURE", "query_var")
    )
    amp_query_var: str = field(
        default_factory=lambda: os.environ.get("AMPSCAN_QUERY_VAR", "amp")
    )

    @property
    def is_amp_canonical(self) -> bool:
        return self.template_mode == "standard"

    # ------------------------------------------------------------------
    # URL discovery
    # ------------------------------------------------------------------
    limit_per_type: int = field(
        default_factory=lambda: int(os.environ.get("AMPSCAN_LIMIT_PER_TYPE", "1"))
    )
    # Empty means every template is supported.
    supported_templates: list[str] = field(
        default_factory=lambda: _env_list("AMPSCAN_SUPPORTED_TEMPLATES")
    )

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------
    correlator_workers: int = field(
        default_factory=lambda: int(os.environ.get("AMPSCAN_CORRELATOR_WORKERS", "1"))
    )

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------
    api_tokens: dict[str, frozenset[str]] = field(
        default_factory=lambda: _parse_api_tokens(os.environ.get("AMPSCAN_API_TOKENS", ""))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("AMPSCAN_LOG_LEVEL", "INFO")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


def setup_logging(level: str) -> None:
    """Configure the root logger once per process."""
    if getattr(setup_logging, "_configured", False):
        return
    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )
    setup_logging._configured = True  # type: ignore[attr-defined]


# Module-level singleton — import this everywhere:
#   from ampscan.config import settings
settings = Settings()
