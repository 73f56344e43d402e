"""
Reconciliation engine
=====================
Decides, for every worksheet row, whether an analysis document has to be
created or already exists, and keeps the row's status cell in step.

Per row:

1. Resolve the identity (``Application / System``); blank rows are ignored.
2. Resolve and create the output folder from the ``DOCUMENT_FOLDER`` column.
3. If ``"{identity} - {label} Analysis.docx"`` exists, only fix the status
   cell (``AlreadyExists``).
4. Otherwise project the mapped columns onto a fresh template instance,
   refresh its fields, save it and mark the status cell (``Created``).

Failures inside a row become ``Failed`` outcomes and never stop the run.
"""

import logging
import os
import re
from typing import Any, Callable, Dict, Iterable, Optional

from .mapping import ColumnMapping
from .model import (
    IDENTITY_COLUMN,
    STATUS_DONE,
    AlreadyExists,
    Created,
    DocumentType,
    Failed,
    RunSummary,
    SheetRow,
    cell_text,
    is_empty,
)

logger = logging.getLogger(__name__)

# Characters Windows refuses in file and folder names
_INVALID_PATH_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_path_component(text: str) -> str:
    cleaned = _INVALID_PATH_CHARS.sub("_", text).rstrip(". ")
    return cleaned or "_"


def row_identity(row: SheetRow) -> str:
    return cell_text(row.get(IDENTITY_COLUMN))


def build_row_index(rows: Iterable[SheetRow]) -> Dict[str, int]:
    """Map identity -> sheet row number; the last occurrence wins."""
    index = {}
    for row in rows:
        identity = row_identity(row)
        if identity:
            index[identity] = row.number
    return index


def resolve_output_folder(output_root: str, row: SheetRow,
                          mapping: ColumnMapping) -> str:
    """Return (and create) the folder the row's document belongs in."""
    folder = output_root
    if mapping.folder_column is not None:
        partition = cell_text(row.get(mapping.folder_column))
        if partition:
            folder = os.path.join(output_root, sanitize_path_component(partition))
    os.makedirs(folder, exist_ok=True)
    return folder


def output_path(folder: str, identity: str, document_type: DocumentType) -> str:
    return os.path.join(folder, document_type.file_name(sanitize_path_component(identity)))


def project_fields(row: SheetRow, mapping: ColumnMapping) -> Dict[str, Any]:
    """Target field -> value for every mapped column that has a value."""
    fields = {}
    for source, target in mapping.field_pairs():
        value = row.get(source)
        if is_empty(value):
            continue
        fields[target] = value.strip() if isinstance(value, str) else value
    return fields


class ReconciliationEngine:
    """Drives the create / skip / status-update decision for each row.

    Args:
        mapping: Column-to-property mapping.
        document_type: Which analysis document is being produced.
        output_root: Root folder for generated documents.
        spreadsheet: Object with ``status_column``, ``read_cell`` and
            ``write_cell`` (see :class:`~sheet_to_docx.spreadsheet.Spreadsheet`).
        open_template: Callable returning a fresh template document.
        row_index: Identity -> row number used for status writes.
    """

    def __init__(self, mapping: ColumnMapping, document_type: DocumentType,
                 output_root: str, spreadsheet, open_template: Callable,
                 row_index: Dict[str, int]):
        self.mapping = mapping
        self.document_type = document_type
        self.output_root = output_root
        self.spreadsheet = spreadsheet
        self.open_template = open_template
        self.row_index = row_index
        self.status_col = spreadsheet.status_column(document_type.status_column)
        if self.status_col is None:
            logger.warning(f"Status column '{document_type.status_column}' not found; "
                           f"status tracking is disabled for this run")

    # ------------------------------------------------------------------
    # Status cell
    # ------------------------------------------------------------------

    def _status_row(self, identity: str) -> Optional[int]:
        if self.status_col is None:
            return None
        return self.row_index.get(identity)

    def _mark_done_if_needed(self, identity: str) -> bool:
        row_number = self._status_row(identity)
        if row_number is None:
            return False
        if self.spreadsheet.read_cell(row_number, self.status_col) == STATUS_DONE:
            return False
        self.spreadsheet.write_cell(row_number, self.status_col, STATUS_DONE)
        return True

    def _mark_done(self, identity: str):
        row_number = self._status_row(identity)
        if row_number is not None:
            self.spreadsheet.write_cell(row_number, self.status_col, STATUS_DONE)

    # ------------------------------------------------------------------
    # Per-row processing
    # ------------------------------------------------------------------

    def process_row(self, row: SheetRow):
        """Return the row's outcome, or ``None`` when its identity is blank."""
        identity = row_identity(row)
        if not identity:
            return None
        try:
            folder = resolve_output_folder(self.output_root, row, self.mapping)
            path = output_path(folder, identity, self.document_type)
            if os.path.exists(path):
                updated = self._mark_done_if_needed(identity)
                logger.debug(f"{identity}: document exists at {path}")
                return AlreadyExists(identity=identity, path=path, status_updated=updated)
            return self._create(row, identity, path)
        except Exception as e:
            logger.error(f"{identity}: {e}")
            return Failed(identity=identity, reason=str(e) or type(e).__name__)

    def _create(self, row: SheetRow, identity: str, path: str) -> Created:
        fields = project_fields(row, self.mapping)
        document = self.open_template()
        try:
            document.set_fields(fields)
            document.refresh_fields(fields)
            try:
                document.save(path)
            except Exception:
                # Do not leave a half-written file that a later run would skip
                if os.path.exists(path):
                    os.remove(path)
                raise
        finally:
            document.close()

        self._mark_done(identity)
        logger.info(f"{identity}: created {path}")
        return Created(identity=identity, path=path,
                       applied_fields=tuple(fields.items()))

    def run(self, rows: Iterable[SheetRow],
            on_outcome: Optional[Callable] = None) -> RunSummary:
        """Process *rows* in order; returns the tallied outcomes."""
        outcomes = []
        for row in rows:
            outcome = self.process_row(row)
            if outcome is None:
                continue
            if on_outcome is not None:
                on_outcome(outcome)
            outcomes.append(outcome)
        return RunSummary.tally(outcomes)
