from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


class SortKey(Enum):
    UPDATED = "updated"  # chronological
    MODEL = "model"  # first secondary identifier
    TAG = "tag"  # first tag


@dataclass(frozen=True)
class Query:
    """Immutable search query: free text plus the selected filter/view token.

    Equality is value based; the controllers rely on it to skip duplicate
    requests.
    """

    text: str = ""
    filter: Optional[str] = None

    def normalized(self) -> "Query":
        return replace(self, text=self.text.strip())

    def with_text(self, text: str) -> "Query":
        return replace(self, text=text)

    def with_filter(self, filter: Optional[str]) -> "Query":
        return replace(self, filter=filter)
