# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Ordered JSON record collections.

Each app keeps its records (entities, vocab types, mappings, ...) as
an ordered collection of JSON objects keyed by their ``id`` field.
Every operation runs in its own short transaction. Read-modify-write
goes through :meth:`DocumentStore.update`, which reads, changes and
writes inside one transaction.
"""
import json
import logging
import threading
from typing import Callable, Iterable, Optional

from sqlalchemy import func

from vdr_console.db.models import AppSetting, Document

log = logging.getLogger(__name__)

# SQLite shares one connection across threads, so writers take this lock.
_write_lock = threading.RLock()


def _get_db_session():
    """Late-binding accessor for DB session context manager.

    Imported at call time (not module level) so that test fixtures can
    reload vdr_console.db.session with a new engine/DB URL and every
    store picks up the new session factory.
    """
    from vdr_console.db.session import get_db_session
    return get_db_session()


def _dumps(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


class DocumentExistsError(ValueError):
    """Raised when inserting or renaming onto an id already in use."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}: id already exists: {doc_id}")


class DocumentStore:
    """A named, ordered collection of JSON records."""

    def __init__(self, collection: str, id_field: str = "id"):
        self.collection = collection
        self.id_field = id_field

    def __repr__(self) -> str:
        return f"DocumentStore({self.collection!r})"

    def _query(self, db):
        return db.query(Document).filter(Document.collection == self.collection)

    def all(self) -> list[dict]:
        """All records in collection order."""
        with _get_db_session() as db:
            rows = self._query(db).order_by(Document.position, Document.id).all()
            return [json.loads(row.data_json) for row in rows]

    def get(self, doc_id: str) -> Optional[dict]:
        with _get_db_session() as db:
            row = self._query(db).filter(Document.doc_id == doc_id).first()
            if row is None:
                return None
            return json.loads(row.data_json)

    def exists(self, doc_id: str) -> bool:
        with _get_db_session() as db:
            return self._query(db).filter(Document.doc_id == doc_id).count() > 0

    def insert(self, doc: dict, *, first: bool = False) -> dict:
        """Add a record at the end (or the front) of the collection.

        Raises:
            DocumentExistsError: if a record with the same id exists.
        """
        doc_id = str(doc[self.id_field])
        with _write_lock, _get_db_session() as db:
            if self._query(db).filter(Document.doc_id == doc_id).count():
                raise DocumentExistsError(self.collection, doc_id)

            if first:
                edge = self._query(db).with_entities(func.min(Document.position)).scalar()
                position = (edge - 1) if edge is not None else 0
            else:
                edge = self._query(db).with_entities(func.max(Document.position)).scalar()
                position = (edge + 1) if edge is not None else 0

            db.add(Document(
                collection=self.collection,
                doc_id=doc_id,
                position=position,
                data_json=_dumps(doc),
            ))
        log.debug(f"{self.collection}: inserted {doc_id}")
        return doc

    def _write(self, db, row: Document, doc: dict) -> None:
        new_id = str(doc[self.id_field])
        if new_id != row.doc_id:
            if self._query(db).filter(Document.doc_id == new_id).count():
                raise DocumentExistsError(self.collection, new_id)
            row.doc_id = new_id
        row.data_json = _dumps(doc)

    def _locked_rows(self, db, doc_ids: list[str]) -> dict[str, Document]:
        rows = (
            self._query(db)
            .filter(Document.doc_id.in_(doc_ids))
            .order_by(Document.doc_id)
            .with_for_update()
            .all()
        )
        return {row.doc_id: row for row in rows}

    def replace(self, doc_id: str, doc: dict) -> Optional[dict]:
        """Overwrite a record in place, keeping its position.

        The new document may carry a different id (rename).

        Returns:
            The stored document, or None if ``doc_id`` does not exist.

        Raises:
            DocumentExistsError: if the rename target is already taken.
        """
        with _write_lock, _get_db_session() as db:
            row = self._locked_rows(db, [doc_id]).get(doc_id)
            if row is None:
                return None
            self._write(db, row, doc)
        return doc

    def update(self, doc_id: str, change: Callable[[dict], dict]) -> Optional[dict]:
        """Read, modify and write one record in a single transaction.

        ``change`` gets the stored record and returns its new version,
        which may carry a different id (rename). The row is locked with
        ``SELECT ... FOR UPDATE`` on PostgreSQL; SQLite writers are
        serialized in-process. If ``change`` raises, nothing is written.

        Returns:
            The stored document, or None if ``doc_id`` does not exist.
        """
        with _write_lock, _get_db_session() as db:
            row = self._locked_rows(db, [doc_id]).get(doc_id)
            if row is None:
                return None
            doc = change(json.loads(row.data_json))
            self._write(db, row, doc)
        return doc

    def update_many(
        self,
        doc_ids: list[str],
        change: Callable[[dict[str, dict]], dict[str, dict]],
    ) -> Optional[dict[str, dict]]:
        """Like :meth:`update` for several records at once.

        ``change`` gets ``{doc_id: record}`` and returns the new versions
        keyed by their current ids.

        Returns:
            The stored documents, or None if any of ``doc_ids`` is missing.
        """
        with _write_lock, _get_db_session() as db:
            rows = self._locked_rows(db, doc_ids)
            if len(rows) != len(set(doc_ids)):
                return None
            docs = change({doc_id: json.loads(row.data_json) for doc_id, row in rows.items()})
            for doc_id, doc in docs.items():
                self._write(db, rows[doc_id], doc)
        return docs

    def delete(self, doc_id: str) -> bool:
        with _write_lock, _get_db_session() as db:
            deleted = self._query(db).filter(Document.doc_id == doc_id).delete()
        if deleted:
            log.debug(f"{self.collection}: deleted {doc_id}")
        return bool(deleted)

    def seed(self, docs: Iterable[dict]) -> bool:
        """Load initial records once per database.

        A marker row in ``app_settings`` records that the collection was
        seeded, so deleting every record later does not bring the
        defaults back.

        Returns:
            True if the records were inserted by this call.
        """
        marker = f"seeded:{self.collection}"
        with _get_db_session() as db:
            if db.get(AppSetting, marker) is not None:
                return False
            if self._query(db).count():
                db.add(AppSetting(name=marker, value_json="true"))
                return False

            for position, doc in enumerate(docs):
                db.add(Document(
                    collection=self.collection,
                    doc_id=str(doc[self.id_field]),
                    position=position,
                    data_json=_dumps(doc),
                ))
            db.add(AppSetting(name=marker, value_json="true"))
        log.info(f"{self.collection}: seeded initial records")
        return True
