"""Sheet-to-Docx batch document generator.

Turns each row of a worksheet into a Word analysis document built from a
template:

  * **Mapping** – a two-column text file links spreadsheet columns to custom
    document properties; the reserved ``DOCUMENT_FOLDER`` target picks the
    output sub-folder.
  * **Reconciliation** – rows whose document already exists are skipped,
    new documents are rendered, and the ``"<Type> Analysis Created"`` status
    column is set to ``Yes``.
  * **Run log** – created / existing / failed outcomes are written to three
    CSV logs and summarised at the end of the run.
"""

from .engine import ReconciliationEngine, build_row_index
from .mapping import ColumnMapping, load_column_mapping
from .model import AlreadyExists, Created, DocumentType, Failed, RunSummary

__all__ = [
    "ReconciliationEngine",
    "build_row_index",
    "ColumnMapping",
    "load_column_mapping",
    "AlreadyExists",
    "Created",
    "DocumentType",
    "Failed",
    "RunSummary",
]
