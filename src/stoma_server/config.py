"""Server configuration: reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

# --- Pagination defaults ---
# Read at import time so FastAPI Query() defaults can reference them.
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Content directory (None → the rulesets/v1/ shipped with stoma_triage)
    ruleset_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Save the diagnosis when /triage/step reaches a result for a known user
    persist_results: bool = True

    # Trusted proxy secret: when set, every request that carries
    # X-User-ID must also carry X-Proxy-Secret matching this value.
    trusted_proxy_secret: str | None = None


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        ruleset_dir=os.getenv("SERVER_RULESET_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        persist_results=os.getenv("SERVER_PERSIST_RESULTS", "true").lower() in _TRUTHY,
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
    )
