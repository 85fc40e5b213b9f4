"""Default configuration values for recordlens."""

from __future__ import annotations

from typing import Final

# Quiescence window applied to typed search text before the paged search is
# re-issued, and to the local filter of fully resident collections.
DEBOUNCE_WINDOW_MS: Final[int] = 500
LISTING_DEBOUNCE_WINDOW_MS: Final[int] = 500

# Pages are 1-based on the search endpoint.
FIRST_PAGE: Final[int] = 1

# Joins secondary identifiers and tags when matching filter text, so a query
# never matches across the boundary of two adjacent values.
TAG_SEPARATOR: Final[str] = ", "

# Full-record fetches issued concurrently when enriching one page.
ENRICH_CONCURRENCY: Final[int] = 8

SETTINGS_DIR_NAME: Final[str] = "recordlens"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
