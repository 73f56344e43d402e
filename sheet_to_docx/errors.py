"""Exception hierarchy for fatal, run-aborting failures.

Anything raised from here stops the run before (or instead of) row
processing.  Row-level problems never use these classes; the engine turns
them into :class:`~sheet_to_docx.model.Failed` outcomes instead.
"""


class SheetToDocxError(RuntimeError):
    """Base class for all fatal errors."""


class ConfigError(SheetToDocxError):
    pass


class MappingFileError(SheetToDocxError):
    pass


class SpreadsheetError(SheetToDocxError):
    pass


class TemplateError(SheetToDocxError):
    pass
