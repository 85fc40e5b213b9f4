"""Client-side controllers for searching, paging, filtering and tagging remote records."""

__version__ = "0.1.0"
