# tests/unit/cache/test_unit_graph_codec.py — v1
"""Tests for cache/graph_codec.py — identity-preserving value encoding."""

from __future__ import annotations

import json
import math
from collections import namedtuple
from datetime import datetime

import pytest

from ttlfilecache.cache.errors import SerializationError
from ttlfilecache.cache.graph_codec import GraphDecodeError, decode_graph, encode_graph


def _through_json(value):
    """Encode, pass through JSON text, decode."""
    return decode_graph(json.loads(json.dumps(encode_graph(value))))


class TestScalars:
    @pytest.mark.parametrize("value", [None, True, False, 0, -7, 2**70, 1.5, "", "foo\nbar", "ünï"])
    def test_scalars_unchanged(self, value):
        assert encode_graph(value) == value
        assert _through_json(value) == value

    def test_nan_and_infinity(self):
        result = _through_json([float("nan"), float("inf"), float("-inf")])
        assert math.isnan(result[0])
        assert result[1:] == [float("inf"), float("-inf")]

    def test_bytes(self):
        assert _through_json(b"\x00\xffraw") == b"\x00\xffraw"


class TestContainers:
    def test_nested(self):
        value = {"a": [1, 2, {"b": (3, 4)}], "c": {5, 6}, "d": frozenset({"x"})}
        assert _through_json(value) == value

    def test_types_preserved(self):
        result = _through_json({"t": (1,), "s": {1}, "f": frozenset({1}), "l": [1]})
        assert type(result["t"]) is tuple
        assert type(result["s"]) is set
        assert type(result["f"]) is frozenset
        assert type(result["l"]) is list

    def test_non_string_dict_keys(self):
        value = {1: "int", (1, 2): "tuple", None: "none", frozenset({3}): "fs"}
        assert _through_json(value) == value

    def test_dict_order_kept(self):
        value = {"z": 1, "a": 2, "m": 3}
        assert list(_through_json(value)) == ["z", "a", "m"]

    def test_subclasses_decode_as_base(self):
        Point = namedtuple("Point", "x y")
        result = _through_json(Point(1, 2))
        assert result == (1, 2)
        assert type(result) is tuple


class TestSharedReferences:
    def test_repeated_reference_keeps_identity(self):
        shared = [1, 2]
        result = _through_json({"a": shared, "b": shared})
        assert result["a"] is result["b"]

    def test_shared_reference_encoded_once(self):
        shared = {"big": "payload"}
        encoded = encode_graph([shared, shared, shared])
        assert json.dumps(encoded).count("payload") == 1

    def test_equal_but_distinct_objects_stay_distinct(self):
        result = _through_json([[1], [1]])
        assert result[0] == result[1]
        assert result[0] is not result[1]

    def test_shared_tuple_as_key_and_value(self):
        key = (1, 2)
        result = _through_json({key: key})
        (k, v), = result.items()
        assert k is v


class TestCycles:
    def test_self_referencing_list(self):
        value: list = [1]
        value.append(value)
        result = _through_json(value)
        assert result[0] == 1
        assert result[1] is result

    def test_self_referencing_dict(self):
        value: dict = {"number": 1}
        value["self"] = value
        result = _through_json(value)
        assert result["self"] is result
        assert result["self"]["self"]["number"] == 1

    def test_object_with_sequence_containing_itself(self):
        obj: dict = {"number": 1}
        obj["arr"] = [obj, obj]
        obj["arr"].append(obj["arr"])
        obj["obj"] = obj
        result = _through_json(obj)
        assert result["obj"] is result
        assert result["arr"][0] is result
        assert result["arr"][1] is result
        assert result["arr"][2] is result["arr"]
        assert result["obj"]["number"] == 1

    def test_cycle_through_tuple_from_list_root(self):
        inner: list = []
        tup = (inner, "tag")
        inner.append(tup)
        result = _through_json(inner)
        assert result[0][0] is result
        assert result[0][1] == "tag"

    def test_cycle_through_tuple_from_tuple_root(self):
        inner: list = []
        tup = (inner,)
        inner.append(tup)
        inner.append(tup)
        result = _through_json(tup)
        assert result[0][0] is result
        assert result[0][1] is result

    def test_cycle_through_tuple_in_dict_value(self):
        holder: dict = {}
        tup = (holder,)
        holder["back"] = tup
        result = _through_json(tup)
        assert result[0]["back"] is result

    def test_tuple_directly_inside_itself_rejected(self):
        inner: list = []
        outer = (inner,)
        inner.append((outer,))
        with pytest.raises(SerializationError, match="Cycle"):
            encode_graph(outer)


class TestEncodeErrors:
    @pytest.mark.parametrize("value", [object(), datetime(2026, 1, 1), {"k": lambda: None}])
    def test_unsupported_types(self, value):
        with pytest.raises(SerializationError, match="Cannot cache"):
            encode_graph(value)

    def test_serialization_error_is_type_error(self):
        with pytest.raises(TypeError):
            encode_graph(object())

    def test_too_deep(self):
        value: list = []
        for _ in range(50_000):
            value = [value]
        with pytest.raises(SerializationError, match="deeply"):
            encode_graph(value)


class TestDecodeErrors:
    @pytest.mark.parametrize("data", [
        [1, 2],
        {"t": "list"},
        {"id": 0, "t": "weird", "items": []},
        {"ref": 3},
        {"id": 0, "t": "list", "items": [{"ref": 1}]},
        {"t": "bytes", "data": "!!not base64!!"},
        {"id": 0, "t": "set", "items": [{"id": 1, "t": "list", "items": []}]},
        {"id": 0, "t": "list", "items": [{"id": 0, "t": "list", "items": []}]},
    ])
    def test_malformed(self, data):
        with pytest.raises(GraphDecodeError):
            decode_graph(data)

    def test_pending_reference_in_fixed_slot(self):
        data = {"id": 0, "t": "tuple", "items": [{"ref": 0}]}
        with pytest.raises(GraphDecodeError):
            decode_graph(data)
