"""
A small document-database look-alike on top of ``JsonStore``.

``DocumentStore(data_dir).collection("courses")`` returns a handle with the
usual ``find_one`` / ``find`` / ``insert_one`` / ``update_one`` / ``delete_one``
calls. Nothing is cached: each call loads the collection file, works on the
list in memory and, for writes, replaces the file atomically. Two callers doing
read-modify-write at the same time can still lose one of the updates.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .json_store import JsonStore
from .query import match, matches, project
from .schemas import SCHEMAS, CollectionSchema, get_schema, utcnow_iso
from .update import apply_update, parse_update

log = logging.getLogger(__name__)

Document = Dict[str, Any]


@dataclass(frozen=True)
class InsertOneResult:
    inserted_id: Any

    def as_dict(self) -> dict:
        return {"insertedId": self.inserted_id}


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int

    def as_dict(self) -> dict:
        return {"matchedCount": self.matched_count, "modifiedCount": self.modified_count}


@dataclass(frozen=True)
class DeleteResult:
    deleted_count: int

    def as_dict(self) -> dict:
        return {"deletedCount": self.deleted_count}


class Cursor:
    """Deferred ``find``: the collection is read when the cursor is materialized."""

    def __init__(self, collection: "Collection", query: Optional[Document], projection: Optional[Document]):
        self._collection = collection
        self._query = query or {}
        self._projection = projection

    def to_list(self) -> List[Document]:
        docs = [d for d in self._collection._load() if matches(d, self._query)]
        if self._projection:
            docs = [project(d, self._projection) for d in docs]
        return docs

    def __iter__(self) -> Iterator[Document]:
        return iter(self.to_list())


class Collection:
    def __init__(self, files: JsonStore, name: str, schema: CollectionSchema):
        self._files = files
        self.name = name
        self.schema = schema

    def __repr__(self):
        return f"Collection({self.name!r})"

    def _load(self) -> List[Document]:
        return [self.schema.normalize(d) if isinstance(d, dict) else d for d in self._files.read(self.name)]

    def _save(self, documents: List[Document]):
        self._files.write(self.name, [self.schema.normalize(d) if isinstance(d, dict) else d for d in documents])

    def _locate(self, documents: List[Document], query: Optional[Document]):
        for i, doc in enumerate(documents):
            if not isinstance(doc, dict):
                continue
            ok, positions = match(doc, query)
            if ok:
                return i, positions
        return -1, {}

    def find_one(self, query: Optional[Document] = None) -> Optional[Document]:
        documents = self._load()
        idx, _ = self._locate(documents, query)
        return documents[idx] if idx >= 0 else None

    def find(self, query: Optional[Document] = None, projection: Optional[Document] = None) -> Cursor:
        return Cursor(self, query, projection)

    def insert_one(self, document: Document) -> InsertOneResult:
        if not isinstance(document, dict):
            raise TypeError("document must be a dict")
        doc = self.schema.normalize(document)
        if doc.get("id") in (None, ""):
            doc["id"] = self.schema.new_id()
        if self.schema.stamp_created:
            now = utcnow_iso()
            doc.setdefault("createdAt", now)
            doc.setdefault("updatedAt", now)

        documents = self._load()
        documents.append(doc)
        self._save(documents)
        log.debug("Inserted %s into %s", doc["id"], self.name)
        return InsertOneResult(doc["id"])

    def update_one(self, query: Optional[Document], update: Document) -> UpdateResult:
        ops = parse_update(update)
        documents = self._load()
        idx, positions = self._locate(documents, query)
        if idx < 0:
            return UpdateResult(0, 0)

        updated = apply_update(documents[idx], ops, positions, self.schema)
        if self.schema.touch_updated and "updatedAt" not in (update.get("$set") or {}):
            updated["updatedAt"] = utcnow_iso()
        documents[idx] = updated
        self._save(documents)
        log.debug("Updated %s in %s", updated.get("id"), self.name)
        return UpdateResult(1, 1)

    def delete_one(self, query: Optional[Document]) -> DeleteResult:
        documents = self._load()
        idx, _ = self._locate(documents, query)
        if idx < 0:
            return DeleteResult(0)
        removed = documents.pop(idx)
        self._save(documents)
        log.debug("Deleted %s from %s", removed.get("id"), self.name)
        return DeleteResult(1)


class DocumentStore:
    """Owns a data directory holding one ``<collection>.json`` file per collection."""

    def __init__(self, data_dir: Path, read_attempts: int = 3, read_delay: float = 0.05):
        self.files = JsonStore(data_dir, read_attempts=read_attempts, read_delay=read_delay)

    @property
    def data_dir(self) -> Path:
        return self.files.data_dir

    @classmethod
    def from_config(cls, config) -> "DocumentStore":
        return cls(
            config["DATA_DIR"],
            read_attempts=int(config.get("STORE_READ_ATTEMPTS", 3)),
            read_delay=float(config.get("STORE_READ_DELAY_MS", 50)) / 1000.0,
        )

    def init_app(self, app):
        app.extensions["document_store"] = self

    def collection(self, name: str) -> Collection:
        self.files.path(name)  # validates the name
        return Collection(self.files, name, get_schema(name))

    __getitem__ = collection

    def ensure_all(self) -> List[str]:
        """Create the file of every known collection; returns their names."""
        for name in SCHEMAS:
            self.files.ensure_file(name)
        return list(SCHEMAS)

    def collection_names(self) -> List[str]:
        return self.files.names()
