"""Pydantic schemas for DataTables server-side requests and responses."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Page length sent by DataTables when the user picks "All".
ALL_RECORDS = -1


class ProtocolVersion(int, Enum):
    """DataTables server-side protocol versions."""

    LEGACY = 1  # DataTables <= 1.9 (sEcho, iDisplayStart, ...)
    CURRENT = 2  # DataTables >= 1.10 (draw, start, ...)


# Envelope key names for each protocol version
OUTPUT_NAMES: Dict[ProtocolVersion, Dict[str, str]] = {
    ProtocolVersion.LEGACY: {
        "data": "aaData",
        "draw": "sEcho",
        "total_records": "iTotalRecords",
        "display_records": "iTotalDisplayRecords",
    },
    ProtocolVersion.CURRENT: {
        "data": "data",
        "draw": "draw",
        "total_records": "recordsTotal",
        "display_records": "recordsFiltered",
    },
}


class SearchValue(BaseModel):
    """A global or per-column search value."""

    value: str = ""
    regex: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("regex", mode="before")
    @classmethod
    def blank_as_false(cls, v: Any) -> Any:
        return False if v in (None, "") else v


class ColumnRequest(BaseModel):
    """One requested display column, in client column order."""

    data: str = ""
    name: str = ""
    searchable: bool = True
    orderable: bool = True
    search: SearchValue = Field(default_factory=SearchValue)

    model_config = ConfigDict(frozen=True)

    @field_validator("data", "name", mode="before")
    @classmethod
    def coerce_to_string(cls, v: Any) -> Any:
        # DataTables sends a numeric index for array data sources
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("searchable", "orderable", mode="before")
    @classmethod
    def blank_as_true(cls, v: Any) -> Any:
        return True if v in (None, "") else v

    @property
    def search_value(self) -> str:
        return self.search.value


class OrderRequest(BaseModel):
    """One requested sort entry."""

    column: int
    dir: str = "asc"

    model_config = ConfigDict(frozen=True)

    @field_validator("dir", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        return "asc" if v is None else str(v).strip().lower()


class DatatableRequest(BaseModel):
    """A version-normalised DataTables request."""

    version: ProtocolVersion = ProtocolVersion.CURRENT
    draw: int = 0
    start: int = 0
    length: int = 10
    search: SearchValue = Field(default_factory=SearchValue)
    order: List[OrderRequest] = []
    columns: List[ColumnRequest] = []

    model_config = ConfigDict(frozen=True)

    @property
    def is_all_records(self) -> bool:
        return self.length == ALL_RECORDS

    @property
    def search_terms(self) -> List[str]:
        """Global search value split into whitespace separated terms."""
        return self.search.value.split()

    def column(self, index: int) -> Optional[ColumnRequest]:
        if 0 <= index < len(self.columns):
            return self.columns[index]
        return None


@dataclass
class DatatableResult:
    """Result of a datatable search, independent of the protocol version."""

    data: List[Dict[str, Any]]
    draw: int
    total_records: int
    display_records: int

    def to_output(self, version: ProtocolVersion) -> Dict[str, Any]:
        """Build the response envelope with the key names of `version`."""
        names = OUTPUT_NAMES[ProtocolVersion(version)]
        return {
            names["data"]: self.data,
            names["draw"]: int(self.draw),
            names["total_records"]: int(self.total_records),
            names["display_records"]: int(self.display_records),
        }
