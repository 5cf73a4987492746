# Shared pytest fixtures
from __future__ import annotations

import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from inventory_import.config.loader import ImportConfig
from inventory_import.logging.init import reset_logging


@pytest.fixture(autouse=True)
def detach_app_logger():
    # handlers bound to a finished test's captured stdout must not leak
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def clean_env(monkeypatch):
    """Remove importer variables inherited from the developer's shell."""
    for name in ("SERVICE_ACCOUNT_PATH", "FIREBASE_PROJECT_ID", "EXCEL_PATH", "SHEET_INDEX", "IMPORT_CONFIG"):
        # setenv first so teardown also removes values loaded from .env
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture()
def sample_mapping_yaml() -> str:
    return """column_mapping:
  "Referencia": referencia
  "Descripción": descripcion
  "Fecha de registro": fecharegistro
  "Fecha de caducidad": caducidad
custom_id_field: referencia
"""


@pytest.fixture()
def write_mapping(temp_workdir: Path, sample_mapping_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_mapping_yaml, encoding="utf-8")
    return cfg


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write an .xlsx where each sheet's first list is the header row."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows[1:], columns=rows[0])
            df.to_excel(writer, sheet_name=sheet_name, index=False)
    return path


@pytest.fixture()
def excel_factory(temp_workdir: Path):
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel(temp_workdir / "data" / name, sheets)
    return _make


@pytest.fixture()
def make_config(temp_workdir: Path):
    base = ImportConfig(
        service_account_path=temp_workdir / "serviceAccount.json",
        project_id="demo-project",
        excel_path=temp_workdir / "data" / "inventory.xlsx",
    )

    def _make(**overrides: Any) -> ImportConfig:
        return replace(base, **overrides)
    return _make


class FakeDocumentReference:
    def __init__(self, collection: str, doc_id: str) -> None:
        self.collection = collection
        self.id = doc_id


class FakeCollection:
    def __init__(self, client: FakeFirestore, name: str) -> None:
        self._client = client
        self.name = name

    def document(self, document_id: str | None = None) -> FakeDocumentReference:
        if document_id is None:
            self._client.auto_ids += 1
            document_id = f"auto-{self._client.auto_ids}"
        return FakeDocumentReference(self.name, document_id)


class FakeWriteBatch:
    def __init__(self, client: FakeFirestore) -> None:
        self._client = client
        self.writes: list[tuple[FakeDocumentReference, dict[str, Any], bool]] = []

    def set(self, reference, document_data, merge=False):
        self.writes.append((reference, dict(document_data), merge))

    def commit(self):
        self._client.commit_attempts += 1
        if self._client.fail_on_commit == self._client.commit_attempts:
            raise RuntimeError("503 Deadline Exceeded")
        self._client.commits.append(list(self.writes))
        for ref, data, merge in self.writes:
            key = (ref.collection, ref.id)
            if merge and key in self._client.documents:
                self._client.documents[key].update(data)
            else:
                self._client.documents[key] = dict(data)
        return []


class FakeFirestore:
    """In-memory stand-in for google.cloud.firestore.Client batched writes."""

    def __init__(self) -> None:
        self.commits: list[list[tuple[FakeDocumentReference, dict[str, Any], bool]]] = []
        self.documents: dict[tuple[str, str], dict[str, Any]] = {}
        self.auto_ids = 0
        self.commit_attempts = 0
        self.fail_on_commit: int | None = None

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeWriteBatch:
        return FakeWriteBatch(self)


@pytest.fixture()
def fake_firestore() -> FakeFirestore:
    return FakeFirestore()
