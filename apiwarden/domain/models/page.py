"""Domain models for offset/length paginated endpoints.

The request envelope follows the DataTables server-side convention
(draw/columns/order/start/length/search) and the response envelope carries
recordsTotal/recordsFiltered/data. Provider-specific request fields (such as
Backupify's ``appType``) travel in ``PageRequest.extra``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

T = TypeVar("T")

RecordDecoder = Callable[[Any], T]


@dataclass(frozen=True)
class Search:
    """Global or per-column search clause."""
    value: str = ""
    regex: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "regex": self.regex}


@dataclass(frozen=True)
class Column:
    """One column of the page request envelope."""
    data: str
    name: str = ""
    searchable: bool = True
    orderable: bool = True
    search: Search = field(default_factory=Search)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "name": self.name,
            "searchable": self.searchable,
            "orderable": self.orderable,
            "search": self.search.to_dict(),
        }


@dataclass(frozen=True)
class Order:
    """Sort clause referencing a column by its index."""
    column: str
    dir: str = "asc"

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "dir": self.dir}


@dataclass
class PageWindow:
    """Offset/length slice requested from the provider.

    ``total_known`` is None until the first response reports a total.
    """
    start: int = 0
    length: int = 75
    total_known: Optional[int] = None


@dataclass
class PageRequest:
    """Generic page request envelope.

    ``start``/``length`` describe the initial window; the pagination driver
    substitutes the current window when rendering each page payload.
    """
    columns: List[Column] = field(default_factory=list)
    order: List[Order] = field(default_factory=list)
    draw: str = "1"
    start: int = 0
    length: int = 75
    search: Search = field(default_factory=Search)
    extra: Dict[str, Any] = field(default_factory=dict)

    def initial_window(self) -> PageWindow:
        return PageWindow(start=self.start, length=self.length)

    def to_payload(self, window: Optional[PageWindow] = None) -> Dict[str, Any]:
        """Renders the JSON body for one page request."""
        window = window or self.initial_window()
        payload: Dict[str, Any] = {
            "draw": self.draw,
            "columns": [column.to_dict() for column in self.columns],
            "order": [order.to_dict() for order in self.order],
            "start": window.start,
            "length": window.length,
            "search": self.search.to_dict(),
        }
        payload.update(self.extra)
        return payload


def _require_count(payload: Mapping[str, Any], key: str) -> int:
    value = payload[key]
    # bool is an int subclass; a boolean total is a malformed response
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"'{key}' must be non-negative, got {value}")
    return value


@dataclass
class PageResponse(Generic[T]):
    """One decoded page of records."""
    records_total: int
    records_filtered: int
    data: List[T] = field(default_factory=list)
    draw: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any, record_decoder: RecordDecoder) -> "PageResponse":
        """Decodes a page response envelope.

        Raises:
            KeyError, TypeError, ValueError: If the payload does not match the
                envelope. The request executor reports these as decode errors.
        """
        if not isinstance(payload, Mapping):
            raise TypeError(f"Page response must be a JSON object, got {type(payload).__name__}")
        records = payload.get("data")
        if not isinstance(records, list):
            raise TypeError("Page response 'data' must be a list")
        draw = payload.get("draw")
        return cls(
            records_total=_require_count(payload, "recordsTotal"),
            records_filtered=_require_count(payload, "recordsFiltered"),
            data=[record_decoder(record) for record in records],
            draw=None if draw is None else str(draw),
        )


@dataclass
class AggregateResult(Generic[T]):
    """All records of one pagination run, in page-arrival order."""
    records: List[T] = field(default_factory=list)
    records_total: int = 0
    records_filtered: int = 0
    draw: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)
