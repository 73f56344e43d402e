"""
Model
=====
Document types, well-known column names and the per-row outcome records
passed from the reconciliation engine to the run log.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

IDENTITY_COLUMN = "Application / System"
FOLDER_FIELD = "DOCUMENT_FOLDER"
STATUS_DONE = "Yes"


class DocumentType(Enum):
    """The fixed set of analysis documents that can be generated."""

    TYPE1 = "Type 1"
    TYPE2 = "Type 2"
    TYPE3 = "Type 3"

    @property
    def label(self) -> str:
        return self.value

    @property
    def status_column(self) -> str:
        return f"{self.label} Analysis Created"

    def file_name(self, identity: str) -> str:
        return f"{identity} - {self.label} Analysis.docx"

    @classmethod
    def parse(cls, text: str) -> "DocumentType":
        """Accept ``Type1``, ``TYPE1`` or the label form ``Type 1``."""
        key = str(text).strip().replace(" ", "").upper()
        for member in cls:
            if member.name == key:
                return member
        choices = ", ".join(m.name.title() for m in cls)
        raise ValueError(f"Unknown document type '{text}'. Expected one of: {choices}")


# ------------------------------------------------------------------
# Outcomes
# ------------------------------------------------------------------

@dataclass(frozen=True)
class Created:
    identity: str
    path: str
    applied_fields: Tuple[Tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class AlreadyExists:
    identity: str
    path: str
    status_updated: bool = False


@dataclass(frozen=True)
class Failed:
    identity: str
    reason: str


@dataclass(frozen=True)
class SheetRow:
    """One data row of the worksheet: its 1-based row number and values."""
    number: int
    values: dict

    def get(self, column: str, default: Optional[Any] = None) -> Any:
        return self.values.get(column, default)


@dataclass(frozen=True)
class RunSummary:
    created: int = 0
    existing: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.created + self.existing + self.failed

    @classmethod
    def tally(cls, outcomes: Iterable) -> "RunSummary":
        outcomes = list(outcomes)
        return cls(
            created=sum(isinstance(o, Created) for o in outcomes),
            existing=sum(isinstance(o, AlreadyExists) for o in outcomes),
            failed=sum(isinstance(o, Failed) for o in outcomes),
        )


def is_empty(value: Any) -> bool:
    """True for missing cells and strings that are blank after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def cell_text(value: Any) -> str:
    """Render a cell value as text; integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
