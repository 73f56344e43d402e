"""
Configuration: YAML file defaults merged with command-line overrides.

Example ``config.yaml``::

    spreadsheet: inventory.xlsx
    sheet: Systems
    document_type: Type1
    template: templates/analysis.docx
    output_folder: output
    mapping_file: column_mapping.txt
    log_dir: logs
    log_level: INFO
"""

import os
from dataclasses import dataclass

import yaml

from .errors import ConfigError
from .model import DocumentType

DEFAULT_MAPPING_FILE = "column_mapping.txt"

DEFAULT_CONFIG = {
    "spreadsheet": None,
    "sheet": None,
    "document_type": None,
    "template": None,
    "output_folder": None,
    "mapping_file": None,
    "log_dir": "logs",
    "log_level": "INFO",
}

REQUIRED_KEYS = ("spreadsheet", "sheet", "document_type", "template", "output_folder")


@dataclass(frozen=True)
class Settings:
    spreadsheet: str
    sheet: str
    document_type: DocumentType
    template: str
    output_folder: str
    mapping_file: str
    log_dir: str = "logs"
    log_level: str = "INFO"


def load_config(config_path):
    """Load configuration from a YAML file on top of :data:`DEFAULT_CONFIG`."""
    config = dict(DEFAULT_CONFIG)
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(user_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config.update(user_config)
    return config


def resolve_settings(config, overrides=None) -> Settings:
    """Apply non-empty *overrides* to *config* and validate the result."""
    merged = dict(config)
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    missing = [k for k in REQUIRED_KEYS if not merged.get(k)]
    if missing:
        raise ConfigError(f"Missing required setting(s): {', '.join(missing)}")

    try:
        document_type = DocumentType.parse(merged["document_type"])
    except ValueError as e:
        raise ConfigError(str(e)) from e

    spreadsheet = str(merged["spreadsheet"])
    mapping_file = merged.get("mapping_file") or os.path.join(
        os.path.dirname(spreadsheet) or ".", DEFAULT_MAPPING_FILE)

    return Settings(
        spreadsheet=spreadsheet,
        sheet=str(merged["sheet"]),
        document_type=document_type,
        template=str(merged["template"]),
        output_folder=str(merged["output_folder"]),
        mapping_file=str(mapping_file),
        log_dir=str(merged.get("log_dir") or "logs"),
        log_level=str(merged.get("log_level") or "INFO"),
    )
