from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable

import pytest

from module_importer.exceptions import DocumentWriteError, StorageError

SERVER_TIMESTAMP = object()


def _merge_into(target: dict, data: dict) -> None:
    """Firestore merge: nested maps merge field by field, everything else is replaced."""
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        else:
            target[key] = copy.deepcopy(value)


class FakeStore:
    """In-memory stand-in for ContentStore.

    Documents live in ``documents[collection_path][doc_id]``. Server timestamps
    resolve to an integer clock that ticks once per write.
    """

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, dict]] = {}
        self.fetches = 0
        self.commits = 0
        self.writes: list[str] = []
        self.clock = 0
        self.fail_fetch_on: set[str] = set()
        self.fail_commit_on: set[str] = set()
        self.fail_write_on: set[str] = set()

    def seed(self, collection_path: str, count: int, prefix: str = "doc") -> None:
        collection = self.documents.setdefault(collection_path, {})
        for index in range(count):
            collection[f"{prefix}{index}"] = {"n": index}

    def fetch_documents(self, collection_path: str, limit: int) -> list:
        self.fetches += 1
        if collection_path in self.fail_fetch_on:
            raise StorageError(f"fetch failed for {collection_path}")
        ids = list(self.documents.get(collection_path, {}))[:limit]
        return [(collection_path, doc_id) for doc_id in ids]

    def delete_documents(self, references: list) -> None:
        for collection_path, _ in references:
            if collection_path in self.fail_commit_on:
                raise StorageError(f"commit failed for {collection_path}")
        for collection_path, doc_id in references:
            collection = self.documents[collection_path]
            del collection[doc_id]
            if not collection:
                del self.documents[collection_path]
        self.commits += 1

    def merge(self, collection_path: str, doc_id: str, data: dict) -> None:
        document_path = f"{collection_path}/{doc_id}"
        if document_path in self.fail_write_on:
            raise DocumentWriteError(document_path, reason="injected failure")
        self.clock += 1
        resolved = {key: self.clock if value is SERVER_TIMESTAMP else value for key, value in data.items()}
        existing = self.documents.setdefault(collection_path, {}).setdefault(doc_id, {})
        _merge_into(existing, resolved)
        self.writes.append(document_path)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP

    def collection(self, collection_path: str) -> dict[str, dict]:
        return self.documents.get(collection_path, {})

    def close(self) -> None:
        pass

    def __enter__(self) -> FakeStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def write_fixture(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a JSON fixture file into tmp_path and return its path."""

    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
