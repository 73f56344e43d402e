"""
Scoped handle over the two external office resources used by a run: the
worksheet being reconciled and the Word template.  Both are released on
every exit path; the spreadsheet is only saved when the run completed.
"""

import logging

from .renderer import TemplateRenderer
from .spreadsheet import Spreadsheet

logger = logging.getLogger(__name__)


class OfficeSession:
    """Context manager exposing ``open_spreadsheet``, ``open_template`` and ``close``.

    Example::

        with OfficeSession(xlsx, "Systems", "template.docx") as session:
            sheet = session.open_spreadsheet()
            doc = session.open_template()
    """

    def __init__(self, spreadsheet_path: str, sheet_name: str, template_path: str):
        self.spreadsheet_path = spreadsheet_path
        self.sheet_name = sheet_name
        self.template_path = template_path
        self._spreadsheet = None
        self._renderer = None

    def open_spreadsheet(self) -> Spreadsheet:
        """Open (once) and return the worksheet."""
        if self._spreadsheet is None:
            self._spreadsheet = Spreadsheet.open(self.spreadsheet_path, self.sheet_name)
        return self._spreadsheet

    def open_template(self):
        """Return a fresh instance of the template document."""
        if self._renderer is None:
            self._renderer = TemplateRenderer(self.template_path)
        return self._renderer.open_template()

    def start(self):
        """Acquire both resources up front so fatal errors surface before any row."""
        self.open_spreadsheet()
        if self._renderer is None:
            self._renderer = TemplateRenderer(self.template_path)
        return self

    def close(self, persist: bool = True):
        """Release everything; save pending status updates when *persist*."""
        try:
            if self._spreadsheet is not None and persist:
                self._spreadsheet.save()
        finally:
            if self._renderer is not None:
                self._renderer.close()
                self._renderer = None
            if self._spreadsheet is not None:
                self._spreadsheet.close()
                self._spreadsheet = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            logger.debug("Closing session without saving after a fatal error")
        self.close(persist=exc_type is None)
        return False
