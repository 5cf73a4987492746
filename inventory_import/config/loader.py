from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from .constants import (
    BATCH_SIZE,
    COLLECTION_NAME,
    DEFAULT_DATE_FIELDS,
    DEFAULT_EXCEL_PATH,
    DEFAULT_MAPPING_PATH,
    DEFAULT_SERVICE_ACCOUNT_PATH,
    DEFAULT_SHEET_INDEX,
)

"""Config loader.

Responsibilities:
- Read run settings from the environment (.env is loaded by the CLI first)
- Load the optional YAML column mapping file and validate it against the
  packaged JSON schema
- Check run preconditions (credential file, project id, spreadsheet) in a
  fixed order before any work begins

The resulting ImportConfig is immutable and passed explicitly to the uploader.
"""

SCHEMA_PATH = Path(__file__).with_name("import_schema.json")

ENV_SERVICE_ACCOUNT_PATH = "SERVICE_ACCOUNT_PATH"
ENV_PROJECT_ID = "FIREBASE_PROJECT_ID"
ENV_EXCEL_PATH = "EXCEL_PATH"
ENV_SHEET_INDEX = "SHEET_INDEX"
ENV_MAPPING_PATH = "IMPORT_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ImportConfig:
    service_account_path: Path
    project_id: str | None
    excel_path: Path
    sheet_index: int = DEFAULT_SHEET_INDEX
    collection_name: str = COLLECTION_NAME
    rename_table: dict[str, str] = field(default_factory=dict)
    custom_id_field: str | None = None
    date_fields: tuple[str, ...] = DEFAULT_DATE_FIELDS
    batch_size: int = BATCH_SIZE


@dataclass(frozen=True)
class MappingConfig:
    rename_table: dict[str, str]
    custom_id_field: str | None
    date_fields: tuple[str, ...]


def _validate_mapping_schema(data: Any) -> None:
    """Validate mapping file contents against the packaged JSON schema.

    Raises:
        ConfigError: schema file missing/unreadable, or the data violates it
            (unknown keys, wrong types, empty names).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_mapping(path: Path, *, required: bool = False) -> MappingConfig:
    """Load the column mapping YAML.

    A missing file yields an empty mapping unless required=True (the path was
    set explicitly), in which case it is a ConfigError.
    """
    if not path.exists():
        if required:
            raise ConfigError(f"mapping file not found: {path}")
        return MappingConfig(rename_table={}, custom_id_field=None, date_fields=DEFAULT_DATE_FIELDS)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_mapping_schema(data)

    id_field = data.get("custom_id_field") or None
    return MappingConfig(
        rename_table={str(k): v for k, v in (data.get("column_mapping") or {}).items()},
        custom_id_field=id_field.strip() if id_field else None,
        date_fields=tuple(data.get("date_fields") or DEFAULT_DATE_FIELDS),
    )


def _parse_sheet_index(raw: str | None) -> int:
    if raw is None or raw.strip() == "":
        return DEFAULT_SHEET_INDEX
    try:
        index = int(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{ENV_SHEET_INDEX} must be an integer, got {raw!r}") from e
    if index < 0:
        raise ConfigError(f"{ENV_SHEET_INDEX} must be >= 0, got {index}")
    return index


def load_config(env: Mapping[str, str] | None = None) -> ImportConfig:
    """Build the run configuration from environment variables.

    Args:
        env: variables to read (defaults to os.environ)
    """
    if env is None:
        env = os.environ

    mapping_env = env.get(ENV_MAPPING_PATH)
    mapping_path = Path(mapping_env) if mapping_env else DEFAULT_MAPPING_PATH
    mapping = load_mapping(mapping_path, required=bool(mapping_env))

    project_id = (env.get(ENV_PROJECT_ID) or "").strip() or None
    return ImportConfig(
        service_account_path=Path(env.get(ENV_SERVICE_ACCOUNT_PATH) or DEFAULT_SERVICE_ACCOUNT_PATH),
        project_id=project_id,
        excel_path=Path(env.get(ENV_EXCEL_PATH) or DEFAULT_EXCEL_PATH),
        sheet_index=_parse_sheet_index(env.get(ENV_SHEET_INDEX)),
        rename_table=mapping.rename_table,
        custom_id_field=mapping.custom_id_field,
        date_fields=mapping.date_fields,
    )


def validate_preconditions(config: ImportConfig, *, require_store: bool = True) -> None:
    """Check fatal preconditions in order: credentials, project id, spreadsheet.

    require_store=False (dry run / inspect) skips the two Firebase checks.
    """
    if require_store:
        if not config.service_account_path.exists():
            raise ConfigError(f"service account file not found: {config.service_account_path}")
        if not config.project_id:
            raise ConfigError(f"{ENV_PROJECT_ID} is not set")
    if not config.excel_path.exists():
        raise ConfigError(f"spreadsheet not found: {config.excel_path}")
