import asyncio
import json
import logging
import secrets
import sqlite3
import unicodedata
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from local_library.config import settings

logger = logging.getLogger(__name__)

# One table per collection, one JSON document per row.
COLLECTIONS = ("authors", "genres", "books", "bookinstances")

Document = Dict[str, Any]


def new_object_id() -> str:
    """Return a new 24 hex character identifier."""
    return secrets.token_hex(12)


def _casefold_key(value: str) -> str:
    return unicodedata.normalize("NFC", value).casefold()


def _casefold_collation(left: str, right: str) -> int:
    """Case-insensitive, accent-sensitive comparison used for duplicate lookups."""
    a, b = _casefold_key(left), _casefold_key(right)
    return (a > b) - (a < b)


def get_db_connection(db_file: str) -> sqlite3.Connection:
    """Open a connection to the SQLite document file."""
    conn = sqlite3.connect(db_file)
    conn.row_factory = sqlite3.Row
    conn.create_collation("CASEFOLD", _casefold_collation)
    return conn


def create_tables(db_file: str) -> None:
    """Create the collection tables if they do not exist yet."""
    conn = get_db_connection(db_file)
    try:
        cursor = conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        for collection in COLLECTIONS:
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {collection} (
                    id TEXT PRIMARY KEY,
                    doc TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: Optional[str] = None) -> "DocumentStore":
    """Prepare the schema and return a store bound to the file."""
    db_file = db_file or settings.database_file
    create_tables(db_file)
    logger.info(f"Document store ready: {db_file}")
    return DocumentStore(db_file)


class DocumentStore:
    """Async document store over SQLite.

    Documents are plain dicts. The identity lives in the ``_id`` key on the
    way out and is never part of the stored JSON. A filter ``{field: value}``
    matches a scalar field equal to ``value`` or an array field that
    contains it. Every public method is a coroutine; the blocking SQLite
    work runs in a worker thread so independent lookups can be gathered.
    """

    def __init__(self, db_file: str) -> None:
        self.db_file = db_file

    # ------------------------- Read operations ------------------------- #
    async def find(self, collection: str, filter: Optional[Document] = None,
                   sort: Optional[str] = None,
                   projection: Optional[Sequence[str]] = None) -> List[Document]:
        return await asyncio.to_thread(self._find, collection, filter, sort, projection, False, None)

    async def find_one(self, collection: str, filter: Document,
                       case_insensitive: bool = False) -> Optional[Document]:
        docs = await asyncio.to_thread(self._find, collection, filter, None, None, case_insensitive, 1)
        return docs[0] if docs else None

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        docs = await asyncio.to_thread(self._find, collection, {"_id": doc_id}, None, None, False, 1)
        return docs[0] if docs else None

    async def find_by_ids(self, collection: str, doc_ids: Iterable[str]) -> List[Document]:
        return await asyncio.to_thread(self._find_by_ids, collection, list(doc_ids))

    async def count(self, collection: str, filter: Optional[Document] = None) -> int:
        return await asyncio.to_thread(self._count, collection, filter)

    # ------------------------- Write operations ------------------------- #
    async def insert(self, collection: str, document: Document) -> str:
        return await asyncio.to_thread(self._insert, collection, document)

    async def replace(self, collection: str, doc_id: str, document: Document) -> bool:
        return await asyncio.to_thread(self._replace, collection, doc_id, document)

    async def delete(self, collection: str, doc_id: str) -> bool:
        return await asyncio.to_thread(self._delete, collection, doc_id)

    # ------------------------- SQLite helpers ------------------------- #
    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return collection

    @staticmethod
    def _where(filter: Optional[Document], case_insensitive: bool = False) -> Tuple[str, list]:
        clauses: List[str] = []
        params: list = []
        collate = " COLLATE CASEFOLD" if case_insensitive else ""
        for field, value in (filter or {}).items():
            if field == "_id":
                clauses.append("id = ?")
                params.append(value)
                continue
            # json_each yields the value itself for scalars and each item for arrays
            clauses.append(
                f"EXISTS (SELECT 1 FROM json_each(doc, ?) WHERE json_each.value = ?{collate})"
            )
            params.extend([f"$.{field}", value])
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _to_document(row: sqlite3.Row, projection: Optional[Sequence[str]] = None) -> Document:
        doc = json.loads(row["doc"])
        if projection:
            doc = {key: doc[key] for key in projection if key in doc}
        doc["_id"] = row["id"]
        return doc

    def _find(self, collection: str, filter: Optional[Document], sort: Optional[str],
              projection: Optional[Sequence[str]], case_insensitive: bool,
              limit: Optional[int]) -> List[Document]:
        table = self._table(collection)
        where, params = self._where(filter, case_insensitive)
        query = f"SELECT id, doc FROM {table}{where}"
        if sort:
            direction = "DESC" if sort.startswith("-") else "ASC"
            query += f" ORDER BY json_extract(doc, ?) {direction}, created_at, id"
            params.append(f"$.{sort.lstrip('-')}")
        else:
            query += " ORDER BY created_at, id"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._to_document(row, projection) for row in rows]
        finally:
            conn.close()

    def _find_by_ids(self, collection: str, doc_ids: List[str]) -> List[Document]:
        table = self._table(collection)
        if not doc_ids:
            return []
        placeholders = ", ".join("?" for _ in doc_ids)
        conn = get_db_connection(self.db_file)
        try:
            rows = conn.execute(
                f"SELECT id, doc FROM {table} WHERE id IN ({placeholders}) ORDER BY created_at, id",
                doc_ids,
            ).fetchall()
            return [self._to_document(row) for row in rows]
        finally:
            conn.close()

    def _count(self, collection: str, filter: Optional[Document]) -> int:
        table = self._table(collection)
        where, params = self._where(filter)
        conn = get_db_connection(self.db_file)
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {table}{where}", params).fetchone()[0]
        finally:
            conn.close()

    def _insert(self, collection: str, document: Document) -> str:
        table = self._table(collection)
        body = {key: value for key, value in document.items() if key != "_id"}
        doc_id = new_object_id()
        conn = get_db_connection(self.db_file)
        try:
            conn.execute(f"INSERT INTO {table} (id, doc) VALUES (?, ?)", (doc_id, json.dumps(body)))
            conn.commit()
        finally:
            conn.close()
        return doc_id

    def _replace(self, collection: str, doc_id: str, document: Document) -> bool:
        table = self._table(collection)
        body = {key: value for key, value in document.items() if key != "_id"}
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(f"UPDATE {table} SET doc = ? WHERE id = ?", (json.dumps(body), doc_id))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def _delete(self, collection: str, doc_id: str) -> bool:
        table = self._table(collection)
        conn = get_db_connection(self.db_file)
        try:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (doc_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
