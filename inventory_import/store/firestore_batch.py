from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from ..models.document import PreparedWrite

"""Firestore batched writes.

One call to write_batch() = one WriteBatch = one atomic commit. Callers keep
chunks at or below the Firestore limit of 500 writes per batch.

Commit failures are wrapped in BatchWriteError and not retried here.
"""


class BatchWriteError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for a single batch commit."""
    batch_size: int  # Number of documents in this batch
    elapsed_seconds: float  # Time spent in commit()
    start_time: float  # time.time() before commit
    end_time: float  # time.time() after commit


@dataclass(frozen=True)
class WriteResult:
    written: int


def create_client(service_account_path: Path, project_id: str) -> Any:
    """Initialize firebase-admin and return a Firestore client.

    Re-uses the default app when it is already initialized in this process.
    """
    try:
        app = firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(str(service_account_path))
        app = firebase_admin.initialize_app(cred, {"projectId": project_id})
    return firestore.client(app)


def write_batch(
    client: Any,
    collection_name: str,
    writes: Iterable[PreparedWrite],
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> WriteResult:
    """Stage writes into one Firestore WriteBatch and commit it.

    Parameters
    ----------
    client: google.cloud.firestore.Client (or anything with batch()/collection())
    collection_name: target collection
    writes: documents for this chunk. document_id None -> auto id + plain set;
        otherwise set(..., merge=True) at that id
    metrics_callback: receives BatchMetrics after the commit (also on failure)

    A chunk whose rows all failed still commits an empty batch, so every
    chunk costs exactly one commit.
    """
    writes_list = list(writes)

    collection = client.collection(collection_name)
    batch = client.batch()
    for w in writes_list:
        if w.document_id is None:
            batch.set(collection.document(), w.data)
        else:
            batch.set(collection.document(w.document_id), w.data, merge=True)

    start_time = time.time()
    try:
        batch.commit()
    except Exception as e:
        raise BatchWriteError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(writes_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return WriteResult(written=len(writes_list))
