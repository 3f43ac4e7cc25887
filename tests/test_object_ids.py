"""Tests for _id string -> ObjectId coercion (core/object_ids.py)."""

import pytest
from bson import ObjectId

from core.errors import InvalidObjectIdError
from core.object_ids import coerce_object_ids, coerce_pipeline, to_object_id

HEX_ID = "65f1c0a2b3c4d5e6f7a8b9c0"
OTHER_HEX_ID = "65f1c0a2b3c4d5e6f7a8b9c1"


class TestDirectValue:
    def test_valid_hex_string_becomes_object_id(self):
        result = coerce_object_ids({"_id": HEX_ID})
        assert result["_id"] == ObjectId(HEX_ID)
        assert isinstance(result["_id"], ObjectId)

    def test_invalid_string_is_left_unchanged(self):
        """Fails open: the malformed id passes through as a string."""
        result = coerce_object_ids({"_id": "not-an-id"})
        assert result["_id"] == "not-an-id"

    def test_other_fields_are_untouched(self):
        result = coerce_object_ids({"owner_id": HEX_ID, "name": "x"})
        assert result == {"owner_id": HEX_ID, "name": "x"}

    def test_non_string_id_is_untouched(self):
        assert coerce_object_ids({"_id": 42}) == {"_id": 42}

    def test_input_is_not_mutated(self):
        query = {"_id": HEX_ID, "nested": {"_id": {"$ne": HEX_ID}}}
        coerce_object_ids(query)
        assert query["_id"] == HEX_ID

    def test_empty_and_none(self):
        assert coerce_object_ids(None) == {}
        assert coerce_object_ids({}) == {}


class TestOperators:
    def test_string_operator_values(self):
        result = coerce_object_ids({"_id": {"$ne": HEX_ID, "$gt": "bogus"}})
        assert result["_id"] == {"$ne": ObjectId(HEX_ID), "$gt": "bogus"}

    def test_in_list_elements(self):
        result = coerce_object_ids({"_id": {"$in": [HEX_ID, OTHER_HEX_ID, "bogus"]}})
        assert result["_id"]["$in"] == [ObjectId(HEX_ID), ObjectId(OTHER_HEX_ID), "bogus"]

    def test_non_string_operands_untouched(self):
        result = coerce_object_ids({"_id": {"$exists": True}})
        assert result["_id"] == {"$exists": True}

    def test_operator_mapping_is_copied(self):
        operators = {"$ne": HEX_ID}
        coerce_object_ids({"_id": operators})
        assert operators == {"$ne": HEX_ID}


class TestStrictMode:
    def test_invalid_id_raises(self):
        with pytest.raises(InvalidObjectIdError, match="not-an-id"):
            coerce_object_ids({"_id": "not-an-id"}, strict=True)

    def test_invalid_operand_raises(self):
        with pytest.raises(InvalidObjectIdError):
            coerce_object_ids({"_id": {"$in": [HEX_ID, "nope"]}}, strict=True)

    def test_valid_id_still_converts(self):
        assert to_object_id(HEX_ID, strict=True) == ObjectId(HEX_ID)


class TestPipeline:
    def test_match_stage_is_coerced(self):
        pipeline = [
            {"$match": {"_id": HEX_ID}},
            {"$group": {"_id": "$status", "n": {"$sum": 1}}},
        ]
        result = coerce_pipeline(pipeline)

        assert result[0] == {"$match": {"_id": ObjectId(HEX_ID)}}
        # $group's "_id" is a field path, not a filter
        assert result[1] == {"$group": {"_id": "$status", "n": {"$sum": 1}}}

    def test_pipeline_input_is_not_mutated(self):
        pipeline = [{"$match": {"_id": HEX_ID}}]
        coerce_pipeline(pipeline)
        assert pipeline == [{"$match": {"_id": HEX_ID}}]
