#!/usr/bin/env python
"""
Sheet-to-Docx – CLI entry point.

Usage:
    python -m sheet_to_docx.main [--config config.yaml]
        [--spreadsheet inventory.xlsx] [--sheet Systems] [--type Type1]
        [--template analysis.docx] [--output-folder output]
        [--mapping column_mapping.txt] [--log-dir logs] [--log-level INFO]

Command-line values override the config file.  Exit code is 1 when a
precondition fails (missing input, missing sheet, unreadable template);
individual row failures are logged and do not change the exit code.
"""

import argparse
import logging
import os
import sys

from sheet_to_docx.config import load_config, resolve_settings, Settings
from sheet_to_docx.engine import ReconciliationEngine, build_row_index
from sheet_to_docx.errors import SheetToDocxError
from sheet_to_docx.mapping import load_column_mapping
from sheet_to_docx.model import RunSummary
from sheet_to_docx.run_log import RunLog, log_summary
from sheet_to_docx.session import OfficeSession

logger = logging.getLogger(__name__)


def setup_logging(level_str: str = "INFO"):
    """Configure logging."""
    level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def run(settings: Settings) -> RunSummary:
    """Execute one reconciliation run.

    Raises:
        SheetToDocxError: for any fatal precondition failure.
    """
    mapping = load_column_mapping(settings.mapping_file)

    with OfficeSession(settings.spreadsheet, settings.sheet, settings.template) as session:
        session.start()
        sheet = session.open_spreadsheet()

        for column in mapping.missing_columns(sheet.headers):
            logger.warning(f"Mapped column '{column}' is not in worksheet '{settings.sheet}'")

        rows = list(sheet.rows())
        engine = ReconciliationEngine(
            mapping=mapping,
            document_type=settings.document_type,
            output_root=settings.output_folder,
            spreadsheet=sheet,
            open_template=session.open_template,
            row_index=build_row_index(rows),
        )

        with RunLog(settings.log_dir) as run_log:
            summary = engine.run(rows, on_outcome=run_log.record)
            log_summary(summary, run_log)

    return summary


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate Word analysis documents from spreadsheet rows"
    )
    parser.add_argument(
        "--config", default="config.yaml",
        help="Path to config YAML file (default: config.yaml)",
    )
    parser.add_argument("--spreadsheet", "-s", default=None, help="Input workbook (.xlsx)")
    parser.add_argument("--sheet", default=None, help="Worksheet name")
    parser.add_argument(
        "--type", dest="document_type", default=None,
        help="Document type: Type1, Type2 or Type3",
    )
    parser.add_argument("--template", "-t", default=None, help="Word template (.docx)")
    parser.add_argument(
        "--output-folder", "-o", dest="output_folder", default=None,
        help="Root folder for generated documents",
    )
    parser.add_argument(
        "--mapping", "-m", dest="mapping_file", default=None,
        help="Column mapping file (default: column_mapping.txt next to the spreadsheet)",
    )
    parser.add_argument("--log-dir", dest="log_dir", default=None, help="Folder for run logs")
    parser.add_argument(
        "--log-level", dest="log_level", default=None,
        help="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    args = parser.parse_args(argv)

    overrides = {k: v for k, v in vars(args).items() if k != "config"}

    try:
        config = load_config(args.config)
        settings = resolve_settings(config, overrides)
    except SheetToDocxError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(str(e))
        return 1

    setup_logging(settings.log_level)

    logger.info("Sheet-to-Docx")
    logger.info("=============")
    logger.info(f"Spreadsheet:   {settings.spreadsheet} [{settings.sheet}]")
    logger.info(f"Document type: {settings.document_type.label}")
    logger.info(f"Template:      {settings.template}")
    logger.info(f"Output folder: {os.path.abspath(settings.output_folder)}")
    logger.info(f"Mapping file:  {settings.mapping_file}")

    try:
        run(settings)
    except SheetToDocxError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
