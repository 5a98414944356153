# src/cache/graph_codec.py — v1
"""Identity-preserving encoder for cyclic value graphs.

Turns an arbitrary graph of builtin containers into a JSON-compatible tree
and back. Every container is emitted once, tagged with a numeric id; any
later occurrence of the same object is written as ``{"ref": id}``. Decoding
rebuilds the shared references and cycles instead of duplicating them.

Encoded node shapes::

    {"id": 0, "t": "list", "items": [...]}
    {"id": 1, "t": "dict", "items": [[key, value], ...]}
    {"id": 2, "t": "tuple" | "set" | "frozenset", "items": [...]}
    {"t": "bytes", "data": "<base64>"}
    {"ref": 0}

Scalars (None, bool, int, float, str) are emitted unchanged. Container
subclasses (namedtuple, defaultdict, ...) decode as their builtin base.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from ttlfilecache.cache.errors import SerializationError

_SCALARS = (bool, int, float, str)

# Slots that can receive an object after it is constructed (list index,
# dict value). Everything else (tuple member, set member, dict key) must be
# materialized before its parent is built.
_PATCHABLE = "patchable"
_FIXED = "fixed"


class GraphDecodeError(ValueError):
    """Encoded tree is malformed or references unknown nodes."""


def encode_graph(value: Any) -> Any:
    """Encode ``value`` into a JSON-compatible tree.

    Raises:
        SerializationError: If the graph holds an unsupported type, is too
            deep, or needs a cycle Python cannot rebuild.
    """
    try:
        return _GraphEncoder().encode(value, _PATCHABLE)
    except RecursionError as exc:
        raise SerializationError("Value graph is nested too deeply to encode") from exc


def decode_graph(data: Any) -> Any:
    """Rebuild the value graph produced by :func:`encode_graph`.

    Raises:
        GraphDecodeError: If ``data`` is not a well-formed encoded tree.
    """
    decoder = _GraphDecoder()
    try:
        result = decoder.decode(data)
    except GraphDecodeError:
        raise
    except (KeyError, TypeError, ValueError, IndexError, RecursionError, binascii.Error) as exc:
        raise GraphDecodeError(f"Malformed value graph: {exc!r}") from exc
    decoder.check_complete()
    return result


def _container_kind(value: Any) -> str:
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "dict"
    if isinstance(value, tuple):
        return "tuple"
    if isinstance(value, frozenset):
        return "frozenset"
    if isinstance(value, set):
        return "set"
    raise SerializationError(
        f"Cannot cache values of type {type(value).__name__!r}"
    )


class _GraphEncoder:
    def __init__(self) -> None:
        self._nodes: dict[int, int] = {}
        # Immutable containers whose members are still being encoded.
        self._unfinished: set[int] = set()

    def encode(self, value: Any, slot: str) -> Any:
        if value is None or isinstance(value, _SCALARS):
            return value
        if isinstance(value, bytes):
            return {"t": "bytes", "data": base64.b64encode(value).decode("ascii")}

        node = self._nodes.get(id(value))
        if node is not None:
            if node in self._unfinished and slot != _PATCHABLE:
                raise SerializationError(
                    f"Cycle through {type(value).__name__} cannot be rebuilt: "
                    "it is referenced from a tuple, set or dict key inside itself"
                )
            return {"ref": node}

        kind = _container_kind(value)
        node = len(self._nodes)
        self._nodes[id(value)] = node
        immutable = kind in ("tuple", "frozenset")
        if immutable:
            self._unfinished.add(node)
        try:
            if kind == "dict":
                items: list[Any] = [
                    [self.encode(k, _FIXED), self.encode(v, _PATCHABLE)]
                    for k, v in value.items()
                ]
            elif kind == "list":
                items = [self.encode(item, _PATCHABLE) for item in value]
            else:
                items = [self.encode(item, _FIXED) for item in value]
        finally:
            if immutable:
                self._unfinished.discard(node)
        return {"id": node, "t": kind, "items": items}


class _Pending:
    """Reference to an immutable container that is not built yet."""

    __slots__ = ("node",)

    def __init__(self, node: int) -> None:
        self.node = node


class _GraphDecoder:
    def __init__(self) -> None:
        self._nodes: dict[int, Any] = {}
        self._building: set[int] = set()
        self._patches: dict[int, list[tuple[Any, Any]]] = {}

    def decode(self, data: Any) -> Any:
        if data is None or isinstance(data, _SCALARS):
            return data
        if not isinstance(data, dict):
            raise GraphDecodeError(f"Unexpected node {type(data).__name__}")

        if "ref" in data:
            node = data["ref"]
            if node in self._nodes:
                return self._nodes[node]
            if node in self._building:
                return _Pending(node)
            raise GraphDecodeError(f"Dangling reference to node {node!r}")

        kind = data["t"]
        if kind == "bytes":
            return base64.b64decode(data["data"], validate=True)

        node = data["id"]
        if node in self._nodes or node in self._building:
            raise GraphDecodeError(f"Duplicate node id {node!r}")
        items = data["items"]

        if kind == "list":
            result: Any = []
            self._nodes[node] = result
            for index, item in enumerate(items):
                result.append(self._patchable(self.decode(item), result, index))
        elif kind == "dict":
            result = {}
            self._nodes[node] = result
            for key_data, value_data in items:
                key = self._fixed(self.decode(key_data))
                result[key] = self._patchable(self.decode(value_data), result, key)
        elif kind == "set":
            result = set()
            self._nodes[node] = result
            for item in items:
                result.add(self._fixed(self.decode(item)))
        elif kind in ("tuple", "frozenset"):
            self._building.add(node)
            members = [self._fixed(self.decode(item)) for item in items]
            result = tuple(members) if kind == "tuple" else frozenset(members)
            self._building.discard(node)
            self._nodes[node] = result
            for container, slot in self._patches.pop(node, []):
                container[slot] = result
        else:
            raise GraphDecodeError(f"Unknown node type {kind!r}")
        return result

    def _patchable(self, child: Any, container: Any, slot: Any) -> Any:
        if isinstance(child, _Pending):
            self._patches.setdefault(child.node, []).append((container, slot))
            return None
        return child

    @staticmethod
    def _fixed(child: Any) -> Any:
        if isinstance(child, _Pending):
            raise GraphDecodeError(f"Unresolvable reference to node {child.node!r}")
        return child

    def check_complete(self) -> None:
        if self._patches:
            raise GraphDecodeError(
                f"Unresolved references to nodes {sorted(self._patches)!r}"
            )
