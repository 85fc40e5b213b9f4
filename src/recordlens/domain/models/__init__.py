from .core import Record, SearchPage, coerce_record, parse_timestamp
from .query import Query, SortKey, SortOrder

__all__ = [
    "Query",
    "Record",
    "SearchPage",
    "SortKey",
    "SortOrder",
    "coerce_record",
    "parse_timestamp",
]
