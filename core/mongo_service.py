# =============================================================================
# core/mongo_service.py  -  Thin wrapper over the pymongo driver
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   MongoService owns ONE MongoClient and ONE database handle.  Each method
#   forwards to the matching driver call after applying identifier coercion
#   (core/object_ids.py) to any filter, query, or $match stage, and returns
#   plain dicts/lists shaped like the gateway payloads:
#
#     insert_one   -> {acknowledged, insertedId}
#     insert_many  -> {acknowledged, insertedCount, insertedIds}
#     update_*     -> {acknowledged, matchedCount, modifiedCount, upsertedId}
#     delete_*     -> {acknowledged, deletedCount}
#
# ERRORS:
#   Driver exceptions are logged here and re-raised.  Turning them into a
#   textual tool result is the gateway's job (tools/mcp_server.py).
# =============================================================================

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from pymongo import MongoClient
from pymongo.database import Database

from core.errors import NotConnectedError
from core.object_ids import coerce_object_ids, coerce_pipeline
from core.settings import GatewaySettings

logger = logging.getLogger(__name__)


@contextmanager
def _logged(action: str) -> Iterator[None]:
    """Log a driver failure with context, then let it propagate."""
    try:
        yield
    except Exception as exc:
        logger.error("Error %s: %s", action, exc)
        raise


class MongoService:
    """Forwarding layer between the gateway tools and one MongoDB database.

    Usage:
        service = MongoService("mongodb://localhost:27017", "shop")
        service.connect()
        service.count_documents("orders", {"status": "open"})
        service.disconnect()
    """

    def __init__(
        self,
        uri: str,
        db_name: str,
        strict_object_ids: bool = False,
        client: Optional[MongoClient] = None,
    ):
        """
        Args:
            uri: MongoDB connection string
            db_name: Database every operation runs against
            strict_object_ids: Raise on malformed ``_id`` strings instead of
                passing them through unchanged
            client: Pre-built client (tests); created lazily otherwise
        """
        self.uri = uri
        self.db_name = db_name
        self.strict_object_ids = strict_object_ids
        self._client = client
        self._db: Optional[Database] = None

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> "MongoService":
        return cls(
            settings.mongodb_uri,
            settings.mongodb_name,
            strict_object_ids=settings.strict_object_ids,
        )

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    @property
    def db(self) -> Database:
        if self._db is None:
            raise NotConnectedError()
        return self._db

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    def connect(self) -> Database:
        """Open the client and verify the server answers a ping."""
        with _logged("connecting to MongoDB"):
            if self._client is None:
                self._client = MongoClient(self.uri)
            self._client.admin.command("ping")
            self._db = self._client[self.db_name]
        logger.info("Connected to MongoDB database '%s'", self.db_name)
        return self._db

    def disconnect(self) -> None:
        if self._client is None:
            return
        with _logged("disconnecting from MongoDB"):
            self._client.close()
        self._client = None
        self._db = None
        logger.info("Disconnected from MongoDB")

    def _coerce(self, query: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        return coerce_object_ids(query, strict=self.strict_object_ids)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find(
        self,
        collection: str,
        query: Optional[Mapping[str, Any]] = None,
        limit: int = 0,
        skip: int = 0,
        sort: Optional[Mapping[str, int]] = None,
        projection: Optional[Mapping[str, int]] = None,
    ) -> list[dict[str, Any]]:
        with _logged(f"finding documents in {collection}"):
            cursor = self.db[collection].find(
                self._coerce(query),
                projection=dict(projection) if projection else None,
                skip=skip,
                limit=limit,
                sort=list(sort.items()) if sort else None,
            )
            return list(cursor)

    def find_one(
        self,
        collection: str,
        query: Optional[Mapping[str, Any]] = None,
        projection: Optional[Mapping[str, int]] = None,
    ) -> Optional[dict[str, Any]]:
        with _logged(f"finding document in {collection}"):
            return self.db[collection].find_one(
                self._coerce(query),
                projection=dict(projection) if projection else None,
            )

    def aggregate(self, collection: str, pipeline: list[Mapping[str, Any]]) -> list[dict[str, Any]]:
        with _logged(f"running aggregation on {collection}"):
            stages = coerce_pipeline(pipeline, strict=self.strict_object_ids)
            return list(self.db[collection].aggregate(stages))

    def count_documents(self, collection: str, query: Optional[Mapping[str, Any]] = None) -> int:
        with _logged(f"counting documents in {collection}"):
            return self.db[collection].count_documents(self._coerce(query))

    def list_collections(self) -> list[str]:
        with _logged("listing collections"):
            return self.db.list_collection_names()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> dict[str, Any]:
        with _logged(f"inserting document into {collection}"):
            result = self.db[collection].insert_one(dict(document))
        return {"acknowledged": result.acknowledged, "insertedId": result.inserted_id}

    def insert_many(self, collection: str, documents: list[Mapping[str, Any]]) -> dict[str, Any]:
        with _logged(f"inserting documents into {collection}"):
            result = self.db[collection].insert_many([dict(doc) for doc in documents])
        return {
            "acknowledged": result.acknowledged,
            "insertedCount": len(result.inserted_ids),
            "insertedIds": list(result.inserted_ids),
        }

    def _update(self, method: str, collection: str, filter, update, upsert: bool) -> dict[str, Any]:
        driver_call = getattr(self.db[collection], method)
        result = driver_call(self._coerce(filter), dict(update), upsert=upsert)
        return {
            "acknowledged": result.acknowledged,
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
            "upsertedId": result.upserted_id,
        }

    def update_one(
        self,
        collection: str,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
    ) -> dict[str, Any]:
        with _logged(f"updating document in {collection}"):
            return self._update("update_one", collection, filter, update, upsert)

    def update_many(
        self,
        collection: str,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
    ) -> dict[str, Any]:
        with _logged(f"updating documents in {collection}"):
            return self._update("update_many", collection, filter, update, upsert)

    def delete_one(self, collection: str, filter: Mapping[str, Any]) -> dict[str, Any]:
        with _logged(f"deleting document from {collection}"):
            result = self.db[collection].delete_one(self._coerce(filter))
        return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}

    def delete_many(self, collection: str, filter: Mapping[str, Any]) -> dict[str, Any]:
        with _logged(f"deleting documents from {collection}"):
            result = self.db[collection].delete_many(self._coerce(filter))
        return {"acknowledged": result.acknowledged, "deletedCount": result.deleted_count}

    # -------------------------------------------------------------------------
    # Collection management
    # -------------------------------------------------------------------------

    def create_collection(self, collection: str) -> dict[str, Any]:
        with _logged(f"creating collection {collection}"):
            self.db.create_collection(collection)
        return {"success": True, "message": f"Collection {collection} created"}

    def drop_collection(self, collection: str) -> dict[str, Any]:
        with _logged(f"dropping collection {collection}"):
            self.db.drop_collection(collection)
        return {"success": True, "message": f"Collection {collection} dropped"}

    def create_index(
        self,
        collection: str,
        keys: Mapping[str, int],
        unique: bool = False,
        name: Optional[str] = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"unique": unique}
        if name:
            kwargs["name"] = name
        with _logged(f"creating index on {collection}"):
            index_name = self.db[collection].create_index(list(keys.items()), **kwargs)
        return {"indexName": index_name}
