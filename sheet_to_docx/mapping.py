"""
Column mapping loader.

Reads the plain-text mapping file that links spreadsheet columns to
custom document properties::

    Application / System, System Name
    Division, DOCUMENT_FOLDER

The reserved target ``DOCUMENT_FOLDER`` does not become a document
property; its source column decides the output sub-folder instead.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import MappingFileError
from .model import FOLDER_FIELD

logger = logging.getLogger(__name__)

# Exactly two comma-separated, non-empty fields.
_RULE_REGEX = re.compile(r'^\s*([^,]*?[^,\s])\s*,\s*([^,]*?[^,\s])\s*$')


@dataclass(frozen=True)
class ColumnMapping:
    """Ordered, immutable (source column, target field) pairs."""
    pairs: Tuple[Tuple[str, str], ...] = ()

    @property
    def folder_column(self) -> Optional[str]:
        for source, target in self.pairs:
            if target == FOLDER_FIELD:
                return source
        return None

    def field_pairs(self) -> List[Tuple[str, str]]:
        """Pairs projected onto the document (everything but the folder key)."""
        return [(s, t) for s, t in self.pairs if t != FOLDER_FIELD]

    def source_columns(self) -> List[str]:
        return [s for s, _t in self.pairs]

    def missing_columns(self, headers: Iterable[str]) -> List[str]:
        present = set(headers)
        return [s for s in self.source_columns() if s not in present]

    def __len__(self):
        return len(self.pairs)


def parse_mapping_lines(lines: Iterable[str]) -> ColumnMapping:
    """Build a :class:`ColumnMapping` from raw text lines.

    Later rules for the same source column replace earlier ones.  Only the
    last rule targeting ``DOCUMENT_FOLDER`` is kept.
    """
    rules = {}
    for line in lines:
        m = _RULE_REGEX.match(line)
        if not m:
            continue
        source, target = m.group(1), m.group(2)
        rules.pop(source, None)
        rules[source] = target

    folder_sources = [s for s, t in rules.items() if t == FOLDER_FIELD]
    for source in folder_sources[:-1]:
        logger.warning(f"Ignoring extra {FOLDER_FIELD} rule for column '{source}' "
                       f"(using '{folder_sources[-1]}')")
        del rules[source]

    return ColumnMapping(pairs=tuple(rules.items()))


def load_column_mapping(path: str) -> ColumnMapping:
    """Load the mapping file at *path*.

    Raises:
        MappingFileError: if the file does not exist or cannot be read.
    """
    if not path or not os.path.isfile(path):
        raise MappingFileError(f"Mapping file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            mapping = parse_mapping_lines(f)
    except (OSError, UnicodeDecodeError) as e:
        raise MappingFileError(f"Cannot read mapping file {path}: {e}") from e

    logger.debug(f"Loaded {len(mapping)} mapping rules from {path}")
    return mapping
