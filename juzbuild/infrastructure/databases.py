"""Document database access for tenant and control-plane data."""
from __future__ import annotations

import copy
import re
import uuid
from typing import Any, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.errors import CollectionInvalid, PyMongoError


class DatabaseError(RuntimeError):
    """Raised when the document database rejects an operation."""


class DatabaseSession(Protocol):
    """A dedicated connection to one logical database."""

    def create_collection(self, collection: str) -> None: ...

    def insert_one(self, collection: str, document: dict[str, Any]) -> str: ...

    def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> list[str]: ...

    def find(self, collection: str, query: dict[str, Any] | None = None) -> list[dict[str, Any]]: ...

    def find_one(self, collection: str, query: dict[str, Any]) -> dict[str, Any] | None: ...

    def update_one(self, collection: str, query: dict[str, Any], changes: dict[str, Any]) -> int: ...

    def drop_database(self) -> None: ...

    def close(self) -> None: ...


class DatabaseGateway(Protocol):
    """Opens sessions on sibling databases of the same server."""

    def connection_string(self, db_name: str) -> str: ...

    def open(self, db_name: str) -> DatabaseSession: ...


# ----------------------------------------------------------------------
# in-memory
# ----------------------------------------------------------------------
class InMemoryDatabaseSession:
    def __init__(self, gateway: "InMemoryDatabaseGateway", db_name: str) -> None:
        self._gateway = gateway
        self._db_name = db_name
        self.closed = False

    def _collection(self, name: str) -> list[dict[str, Any]]:
        if self.closed:
            raise DatabaseError("session is closed")
        database = self._gateway.databases.setdefault(self._db_name, {})
        return database.setdefault(name, [])

    @staticmethod
    def _matches(document: dict[str, Any], query: dict[str, Any] | None) -> bool:
        return all(document.get(key) == value for key, value in (query or {}).items())

    def create_collection(self, collection: str) -> None:
        self._collection(collection)

    def insert_one(self, collection: str, document: dict[str, Any]) -> str:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", uuid.uuid4().hex[:24])
        self._collection(collection).append(stored)
        return str(stored["_id"])

    def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> list[str]:
        return [self.insert_one(collection, document) for document in documents]

    def find(self, collection: str, query: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._collection(collection) if self._matches(doc, query)]

    def find_one(self, collection: str, query: dict[str, Any]) -> dict[str, Any] | None:
        matches = self.find(collection, query)
        return matches[0] if matches else None

    def update_one(self, collection: str, query: dict[str, Any], changes: dict[str, Any]) -> int:
        for document in self._collection(collection):
            if self._matches(document, query):
                document.update(copy.deepcopy(changes))
                return 1
        return 0

    def drop_database(self) -> None:
        self._gateway.databases.pop(self._db_name, None)

    def close(self) -> None:
        self.closed = True


class InMemoryDatabaseGateway:
    """Process-local stand-in for the database server, used in tests and local runs."""

    def __init__(self, base_uri: str = "memory://localhost/Juzbuild") -> None:
        self._base_uri = base_uri
        self.databases: dict[str, dict[str, list[dict[str, Any]]]] = {}
        self.sessions: list[InMemoryDatabaseSession] = []

    def connection_string(self, db_name: str) -> str:
        return _replace_db_path(self._base_uri, db_name)

    def open(self, db_name: str) -> InMemoryDatabaseSession:
        session = InMemoryDatabaseSession(self, db_name)
        self.sessions.append(session)
        return session

    def reset(self) -> None:
        self.databases.clear()
        self.sessions.clear()


# ----------------------------------------------------------------------
# MongoDB
# ----------------------------------------------------------------------
def _replace_db_path(uri: str, db_name: str) -> str:
    """Swap the database segment of a connection URI, keeping any query string."""

    base, sep, query = uri.partition("?")
    scheme, _, rest = base.partition("://")
    host, _, _path = rest.partition("/")
    rebuilt = f"{scheme}://{host}/{db_name}"
    return f"{rebuilt}{sep}{query}" if sep else rebuilt


def _coerce_id(query: dict[str, Any] | None) -> dict[str, Any]:
    query = dict(query or {})
    raw_id = query.get("_id")
    if isinstance(raw_id, str):
        try:
            query["_id"] = ObjectId(raw_id)
        except InvalidId:
            pass
    return query


def _serialise(document: dict[str, Any] | None) -> dict[str, Any] | None:
    if document is None:
        return None
    if isinstance(document.get("_id"), ObjectId):
        document["_id"] = str(document["_id"])
    return document


class MongoDatabaseSession:
    def __init__(self, client: MongoClient, db_name: str) -> None:
        self._client = client
        self._db = client[db_name]

    def create_collection(self, collection: str) -> None:
        try:
            self._db.create_collection(collection)
        except CollectionInvalid:
            return
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc

    def insert_one(self, collection: str, document: dict[str, Any]) -> str:
        try:
            result = self._db[collection].insert_one(dict(document))
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc
        return str(result.inserted_id)

    def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> list[str]:
        if not documents:
            return []
        try:
            result = self._db[collection].insert_many([dict(doc) for doc in documents])
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc
        return [str(inserted) for inserted in result.inserted_ids]

    def find(self, collection: str, query: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        try:
            cursor = self._db[collection].find(_coerce_id(query)).sort("createdAt", -1)
            return [_serialise(doc) for doc in cursor]
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc

    def find_one(self, collection: str, query: dict[str, Any]) -> dict[str, Any] | None:
        try:
            return _serialise(self._db[collection].find_one(_coerce_id(query)))
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc

    def update_one(self, collection: str, query: dict[str, Any], changes: dict[str, Any]) -> int:
        try:
            result = self._db[collection].update_one(_coerce_id(query), {"$set": changes})
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc
        return result.modified_count

    def drop_database(self) -> None:
        try:
            self._client.drop_database(self._db.name)
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc

    def close(self) -> None:
        self._client.close()


class MongoDatabaseGateway:
    """Opens one dedicated ``MongoClient`` per session against ``uri``'s server."""

    def __init__(self, uri: str, *, server_selection_timeout_ms: int = 10_000) -> None:
        if not re.match(r"^mongodb(\+srv)?://", uri):
            raise ValueError("uri must be a mongodb:// or mongodb+srv:// connection string")
        self._uri = uri
        self._timeout_ms = server_selection_timeout_ms

    def connection_string(self, db_name: str) -> str:
        return _replace_db_path(self._uri, db_name)

    def open(self, db_name: str) -> MongoDatabaseSession:
        try:
            client: MongoClient = MongoClient(
                self.connection_string(db_name),
                serverSelectionTimeoutMS=self._timeout_ms,
            )
        except PyMongoError as exc:
            raise DatabaseError(str(exc)) from exc
        return MongoDatabaseSession(client, db_name)


__all__ = [
    "DatabaseError",
    "DatabaseGateway",
    "DatabaseSession",
    "InMemoryDatabaseGateway",
    "InMemoryDatabaseSession",
    "MongoDatabaseGateway",
]
