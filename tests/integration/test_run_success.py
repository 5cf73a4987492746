from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from inventory_import.cli import main as cli_main
from inventory_import.logging.init import reset_logging

"""Integration: real .xlsx file -> CLI -> in-memory Firestore.

Covers header renaming, date normalization, derived ids with upsert and
splitting into 400-row commits.
"""


@pytest.fixture(autouse=True)
def fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def credentials_env(temp_workdir: Path, clean_env):
    (temp_workdir / "serviceAccount.json").write_text("{}", encoding="utf-8")
    clean_env.setenv("FIREBASE_PROJECT_ID", "demo-project")
    return clean_env


def _run(client) -> int:
    with patch("inventory_import.cli.__main__.create_client", return_value=client):
        return cli_main([])


def test_mapped_sheet_is_uploaded(credentials_env, write_mapping, excel_factory, fake_firestore, capsys):
    excel = excel_factory(
        "INVENTARIO.xlsx",
        {
            "Inventario": [
                ["Referencia", "Descripción", "Cantidad", "Fecha de registro", "Fecha de caducidad"],
                ["R-001", "Guantes", 12, datetime(2024, 3, 15), "15/03/25"],
                ["R-002", "Mascarillas", 40, 45366, "2025-01-31T10:00:00"],
            ],
            "Otra": [["x"], [1]],
        },
    )
    credentials_env.setenv("EXCEL_PATH", str(excel))

    code = _run(fake_firestore)
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY collection=inventory rows=2 success=2 failed=0 batches=1" in out
    docs = fake_firestore.documents
    assert set(docs) == {("inventory", "R-001"), ("inventory", "R-002")}
    first = docs[("inventory", "R-001")]
    assert first["descripcion"] == "Guantes"
    assert first["Cantidad"] == 12
    assert first["fecharegistro"] == "2024-03-15"
    assert first["caducidad"] == "2025-03-15"
    second = docs[("inventory", "R-002")]
    assert second["fecharegistro"] == "2024-03-15"
    assert second["caducidad"] == "2025-01-31"
    # derived ids are upserts
    assert all(merge for _, _, merge in fake_firestore.commits[0])


def test_rerun_with_derived_ids_does_not_duplicate(credentials_env, write_mapping, excel_factory, fake_firestore, capsys):
    excel = excel_factory("inv.xlsx", {"S": [["Referencia", "Marca"], ["R-1", "Acme"], ["R-2", "Zeta"]]})
    credentials_env.setenv("EXCEL_PATH", str(excel))

    assert _run(fake_firestore) == 0
    reset_logging()
    assert _run(fake_firestore) == 0

    assert len(fake_firestore.commits) == 2
    assert len(fake_firestore.documents) == 2


def test_without_mapping_uses_generated_ids(credentials_env, excel_factory, fake_firestore, capsys):
    excel = excel_factory("inv.xlsx", {"S": [["Referencia", "Marca"], ["R-1", "Acme"], ["R-1", "Acme"]]})
    credentials_env.setenv("EXCEL_PATH", str(excel))

    assert _run(fake_firestore) == 0
    assert len(fake_firestore.documents) == 2
    assert all(doc_id.startswith("auto-") for _, doc_id in fake_firestore.documents)
    assert not any(merge for _, _, merge in fake_firestore.commits[0])


def test_401_rows_split_into_two_commits(credentials_env, excel_factory, fake_firestore, capsys):
    rows = [["Referencia", "Cantidad"]] + [[f"R-{i}", i] for i in range(1, 402)]
    excel = excel_factory("big.xlsx", {"S": rows})
    credentials_env.setenv("EXCEL_PATH", str(excel))

    code = _run(fake_firestore)
    out = capsys.readouterr().out

    assert code == 0
    assert [len(c) for c in fake_firestore.commits] == [400, 1]
    assert "INFO uploaded: 400/401" in out
    assert "INFO uploaded: 401/401" in out
    assert "SUMMARY collection=inventory rows=401 success=401 failed=0 batches=2" in out


def test_second_sheet_selected_by_index(credentials_env, excel_factory, fake_firestore, capsys):
    excel = excel_factory("inv.xlsx", {"A": [["k"], ["a"]], "B": [["k"], ["b1"], ["b2"]]})
    credentials_env.setenv("EXCEL_PATH", str(excel))
    credentials_env.setenv("SHEET_INDEX", "1")

    assert _run(fake_firestore) == 0
    assert sorted(d["k"] for d in fake_firestore.documents.values()) == ["b1", "b2"]
