"""
Centralized configuration for carebook.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("CAREBOOK_LOG_LEVEL", "INFO")
"""Root log level for CLI and API processes."""

_log_json = os.environ.get("CAREBOOK_LOG_JSON", "")
LOG_JSON: bool | None = None if not _log_json else _log_json.lower() in ("1", "true", "yes")
"""Force JSON (true) or human (false) log lines. Unset = auto-detect from TTY."""

# ============================================================
# Derivation
# ============================================================

PARALLEL_LOOKUPS: bool = os.environ.get("CAREBOOK_PARALLEL_LOOKUPS", "1").lower() in (
    "1",
    "true",
    "yes",
)
"""Issue the plan and addon-master reads concurrently during a derivation."""

RULES_PATH: str | None = os.environ.get("CAREBOOK_RULES_PATH") or None
"""Alternate service_rules.yaml. Unset = config/service_rules.yaml."""

# ============================================================
# API
# ============================================================

CORS_ORIGINS: list[str] = [
    o.strip() for o in os.environ.get("CAREBOOK_CORS_ORIGINS", "*").split(",") if o.strip()
]
"""Allowed CORS origins for the HTTP surface. "*" allows all."""

API_HOST: str = os.environ.get("CAREBOOK_API_HOST", "127.0.0.1")
API_PORT: int = int(os.environ.get("CAREBOOK_API_PORT", "8420"))
