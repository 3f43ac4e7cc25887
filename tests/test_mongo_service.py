"""Unit tests for MongoService - no MongoDB server required.

The driver is replaced by MagicMock objects; the tests check which driver
call is made, with which (coerced) arguments, and how results are shaped.
"""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure

from core.errors import InvalidObjectIdError, NotConnectedError
from core.mongo_service import MongoService
from core.settings import GatewaySettings

HEX_ID = "65f1c0a2b3c4d5e6f7a8b9c0"


class TestConnection:
    def test_db_before_connect_raises(self):
        svc = MongoService("mongodb://localhost:27017", "test", client=MagicMock())
        with pytest.raises(NotConnectedError, match="Not connected"):
            _ = svc.db

    def test_connect_pings_and_selects_database(self, mock_client, mock_db):
        svc = MongoService("mongodb://localhost:27017", "shop", client=mock_client)
        assert svc.connect() is mock_db
        mock_client.admin.command.assert_called_once_with("ping")
        mock_client.__getitem__.assert_called_with("shop")
        assert svc.is_connected

    def test_connect_failure_propagates(self, mock_client):
        mock_client.admin.command.side_effect = OperationFailure("Authentication failed")
        svc = MongoService("mongodb://localhost:27017", "shop", client=mock_client)
        with pytest.raises(OperationFailure, match="Authentication"):
            svc.connect()
        assert not svc.is_connected

    def test_disconnect_closes_client(self, service, mock_client):
        service.disconnect()
        mock_client.close.assert_called_once()
        assert not service.is_connected
        # second call is a no-op
        service.disconnect()
        mock_client.close.assert_called_once()

    def test_from_settings(self):
        settings = GatewaySettings(
            mongodb_uri="mongodb://db:27017", mongodb_name="shop", strict_object_ids=True
        )
        svc = MongoService.from_settings(settings)
        assert svc.uri == "mongodb://db:27017"
        assert svc.db_name == "shop"
        assert svc.strict_object_ids is True


class TestReads:
    def test_find_passes_cursor_options(self, service, collection):
        collection.find.return_value = iter([{"name": "a"}])

        result = service.find(
            "users",
            {"_id": HEX_ID},
            limit=5,
            skip=10,
            sort={"name": 1, "age": -1},
            projection={"name": 1},
        )

        assert result == [{"name": "a"}]
        collection.find.assert_called_once_with(
            {"_id": ObjectId(HEX_ID)},
            projection={"name": 1},
            skip=10,
            limit=5,
            sort=[("name", 1), ("age", -1)],
        )

    def test_find_defaults(self, service, collection):
        collection.find.return_value = iter([])

        assert service.find("users") == []
        collection.find.assert_called_once_with({}, projection=None, skip=0, limit=0, sort=None)

    def test_find_with_malformed_id_still_runs(self, service, collection):
        collection.find.return_value = iter([])

        assert service.find("users", {"_id": "not-an-id"}) == []
        assert collection.find.call_args.args[0] == {"_id": "not-an-id"}

    def test_strict_mode_rejects_malformed_id(self, service, collection):
        service.strict_object_ids = True
        with pytest.raises(InvalidObjectIdError):
            service.find("users", {"_id": "not-an-id"})
        collection.find.assert_not_called()

    def test_find_one(self, service, collection):
        collection.find_one.return_value = None
        assert service.find_one("users", {"_id": HEX_ID}, projection={"email": 0}) is None
        collection.find_one.assert_called_once_with(
            {"_id": ObjectId(HEX_ID)}, projection={"email": 0}
        )

    def test_count_documents_without_query_counts_all(self, service, collection):
        collection.count_documents.return_value = 7
        assert service.count_documents("orders") == 7
        collection.count_documents.assert_called_once_with({})

    def test_aggregate_coerces_match_only(self, service, collection):
        collection.aggregate.return_value = iter([{"_id": "open", "n": 2}])
        pipeline = [{"$match": {"_id": {"$in": [HEX_ID]}}}, {"$group": {"_id": "$status"}}]

        assert service.aggregate("orders", pipeline) == [{"_id": "open", "n": 2}]
        collection.aggregate.assert_called_once_with(
            [{"$match": {"_id": {"$in": [ObjectId(HEX_ID)]}}}, {"$group": {"_id": "$status"}}]
        )

    def test_list_collections(self, service, mock_db):
        mock_db.list_collection_names.return_value = ["users", "orders"]
        assert service.list_collections() == ["users", "orders"]

    def test_driver_error_is_reraised(self, service, collection):
        collection.find.side_effect = OperationFailure("boom")
        with pytest.raises(OperationFailure, match="boom"):
            service.find("users")


class TestWrites:
    def test_insert_one(self, service, collection):
        oid = ObjectId(HEX_ID)
        collection.insert_one.return_value = MagicMock(acknowledged=True, inserted_id=oid)

        assert service.insert_one("users", {"name": "a"}) == {
            "acknowledged": True,
            "insertedId": oid,
        }
        collection.insert_one.assert_called_once_with({"name": "a"})

    def test_insert_many(self, service, collection):
        ids = [ObjectId(), ObjectId()]
        collection.insert_many.return_value = MagicMock(acknowledged=True, inserted_ids=ids)

        result = service.insert_many("users", [{"n": 1}, {"n": 2}])
        assert result == {"acknowledged": True, "insertedCount": 2, "insertedIds": ids}

    @pytest.mark.parametrize("method", ["update_one", "update_many"])
    def test_update_reports_driver_counts(self, service, collection, method):
        getattr(collection, method).return_value = MagicMock(
            acknowledged=True, matched_count=4, modified_count=3, upserted_id=None
        )

        result = getattr(service, method)(
            "users", {"_id": HEX_ID}, {"$set": {"active": True}}, upsert=True
        )

        assert result == {
            "acknowledged": True,
            "matchedCount": 4,
            "modifiedCount": 3,
            "upsertedId": None,
        }
        getattr(collection, method).assert_called_once_with(
            {"_id": ObjectId(HEX_ID)}, {"$set": {"active": True}}, upsert=True
        )

    @pytest.mark.parametrize("method", ["delete_one", "delete_many"])
    def test_delete(self, service, collection, method):
        getattr(collection, method).return_value = MagicMock(acknowledged=True, deleted_count=0)

        assert getattr(service, method)("users", {"_id": HEX_ID}) == {
            "acknowledged": True,
            "deletedCount": 0,
        }
        getattr(collection, method).assert_called_once_with({"_id": ObjectId(HEX_ID)})


class TestCollectionManagement:
    def test_create_collection(self, service, mock_db):
        assert service.create_collection("logs") == {
            "success": True,
            "message": "Collection logs created",
        }
        mock_db.create_collection.assert_called_once_with("logs")

    def test_drop_collection(self, service, mock_db):
        assert service.drop_collection("logs") == {
            "success": True,
            "message": "Collection logs dropped",
        }
        mock_db.drop_collection.assert_called_once_with("logs")

    def test_create_index(self, service, collection):
        collection.create_index.return_value = "email_1"

        assert service.create_index("users", {"email": 1}, unique=True) == {"indexName": "email_1"}
        collection.create_index.assert_called_once_with([("email", 1)], unique=True)

    def test_create_index_with_name(self, service, collection):
        collection.create_index.return_value = "by_email"
        service.create_index("users", {"email": 1}, name="by_email")
        collection.create_index.assert_called_once_with(
            [("email", 1)], unique=False, name="by_email"
        )
