"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Pagination: zero-based offset, page size defaults to 20 when unspecified.
DEFAULT_PAGE_SIZE: int = _int_env("WAYFARER_DEFAULT_PAGE_SIZE", 20)
MAX_PAGE_SIZE: int = _int_env("WAYFARER_MAX_PAGE_SIZE", 100)

# Follow suggestions returned when the caller does not ask for a specific amount.
SUGGESTION_LIMIT: int = _int_env("WAYFARER_SUGGESTION_LIMIT", 10)

# Bounded retry for transient store failures on idempotent engagement operations.
TRANSIENT_RETRY_ATTEMPTS: int = _int_env("WAYFARER_TRANSIENT_RETRY_ATTEMPTS", 3)

# Itineraries are streamed in batches of this size when recomputing travel stats.
STATS_ITINERARY_BATCH_SIZE: int = _int_env("WAYFARER_STATS_BATCH_SIZE", 500)

# Optional JSON file ({"Country": "Continent", ...}) replacing the built-in lookup.
COUNTRY_CONTINENT_MAP_PATH: str | None = os.getenv("WAYFARER_COUNTRY_CONTINENT_MAP") or None

# Apply Alembic migrations when the API starts. Disabled by the test suite,
# which builds the schema directly from the models.
RUN_MIGRATIONS_ON_STARTUP: bool = _int_env("WAYFARER_RUN_MIGRATIONS", 1) != 0
