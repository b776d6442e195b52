"""
Pure-Python SafeTensors header validator.

Decoding happens in two passes: the JSON text is first loaded into a generic
tree in which objects keep their raw key/value pairs, then each field is
checked and converted into typed descriptors.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

from extract_metadata.errors import ErrorKind, HeaderError
from extract_metadata.io.file_reader import RawHeader

METADATA_KEY = "__metadata__"

DTYPES: Tuple[str, ...] = ("F64", "F32", "F16", "BF16", "I64", "I32", "I16", "I8", "U8", "BOOL")


@dataclass(frozen=True)
class TensorDescriptor:
    name: str
    dtype: str
    shape: Tuple[int, ...]
    data_offsets: Tuple[int, int]

    @property
    def nbytes(self) -> int:
        begin, end = self.data_offsets
        return end - begin


class FrozenMapping(Mapping):
    """Read-only view over a dict that still pickles across process pools."""

    __slots__ = ("_data",)

    def __init__(self, data=None):
        self._data = dict(data or {})

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __reduce__(self):
        return (self.__class__, (self._data,))

    def __repr__(self) -> str:
        return f"FrozenMapping({self._data!r})"


@dataclass(frozen=True)
class ParsedHeader:
    """Validated header of one file. `tensors` and `metadata` are read-only."""

    header_size: int
    data_start: int
    data_length: int
    tensors: Mapping[str, TensorDescriptor] = field(default_factory=FrozenMapping)
    metadata: Mapping[str, str] = field(default_factory=FrozenMapping)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tensors", FrozenMapping(self.tensors))
        object.__setattr__(self, "metadata", FrozenMapping(self.metadata))

    @property
    def data_bytes_used(self) -> int:
        return max((t.data_offsets[1] for t in self.tensors.values()), default=0)


class _JsonObject(list):
    """Key/value pairs of one decoded JSON object, duplicates included."""


def _decode_tree(blob: bytes) -> _JsonObject:
    try:
        text = blob.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HeaderError(ErrorKind.MALFORMED_JSON, f"header is not valid UTF-8: {e}") from e
    try:
        tree = json.loads(text, object_pairs_hook=_JsonObject)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals, pathological nesting
        raise HeaderError(ErrorKind.MALFORMED_JSON, f"invalid JSON header: {e}") from e
    if not isinstance(tree, _JsonObject):
        raise HeaderError(
            ErrorKind.MALFORMED_JSON,
            f"header must be a JSON object, got {_json_type(tree)}",
        )
    return tree


def _json_type(value: Any) -> str:
    if isinstance(value, _JsonObject):
        return "object"
    if _is_array(value):
        return "array"
    if isinstance(value, bool):
        return "boolean"
    if value is None:
        return "null"
    if isinstance(value, str):
        return "string"
    return "number"


def _is_array(value: Any) -> bool:
    return isinstance(value, list) and not isinstance(value, _JsonObject)


def _is_uint(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are never sizes.
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _fields(name: str, entry: Any) -> Dict[str, Any]:
    if not isinstance(entry, _JsonObject):
        raise HeaderError(
            ErrorKind.MALFORMED_JSON,
            f"entry for tensor {name!r} must be an object, got {_json_type(entry)}",
        )
    fields: Dict[str, Any] = {}
    for key, value in entry:
        if key in fields:
            raise HeaderError(
                ErrorKind.MALFORMED_JSON, f"tensor {name!r} repeats field {key!r}"
            )
        fields[key] = value
    return fields


def _tensor(name: str, entry: Any, data_length: int) -> TensorDescriptor:
    fields = _fields(name, entry)

    dtype = fields.get("dtype")
    if not isinstance(dtype, str) or dtype not in DTYPES:
        raise HeaderError(ErrorKind.UNKNOWN_DTYPE, f"tensor {name!r} has unknown dtype {dtype!r}")

    shape = fields.get("shape")
    if not _is_array(shape) or not all(_is_uint(d) for d in shape):
        raise HeaderError(
            ErrorKind.INVALID_SHAPE,
            f"tensor {name!r} shape must be an array of non-negative integers, got {shape!r}",
        )

    offsets = fields.get("data_offsets")
    if not (
        _is_array(offsets) and len(offsets) == 2 and all(_is_uint(x) for x in offsets)
    ):
        raise HeaderError(
            ErrorKind.INVALID_OFFSETS,
            f"tensor {name!r} data_offsets must be [begin, end] integers, got {offsets!r}",
        )
    begin, end = offsets
    if end < begin:
        raise HeaderError(
            ErrorKind.NEGATIVE_RANGE, f"tensor {name!r} ends before it begins: [{begin}, {end})"
        )
    if end > data_length:
        raise HeaderError(
            ErrorKind.OFFSET_OUT_OF_BOUNDS,
            f"tensor {name!r} range [{begin}, {end}) exceeds data segment of {data_length} bytes",
        )

    return TensorDescriptor(
        name=name, dtype=dtype, shape=tuple(shape), data_offsets=(begin, end)
    )


def _metadata(value: Any) -> Dict[str, str]:
    if not isinstance(value, _JsonObject):
        raise HeaderError(
            ErrorKind.INVALID_METADATA_VALUE,
            f"{METADATA_KEY} must be an object, got {_json_type(value)}",
        )
    record: Dict[str, str] = {}
    for key, v in value:
        if not isinstance(v, str):
            raise HeaderError(
                ErrorKind.INVALID_METADATA_VALUE,
                f"{METADATA_KEY} value for {key!r} must be a string, got {_json_type(v)}",
            )
        record[key] = v
    return record


def _check_overlaps(tensors: List[TensorDescriptor]) -> None:
    """Reject any two non-empty ranges that share a byte."""
    ordered = sorted(
        (t for t in tensors if t.nbytes > 0), key=lambda t: (t.data_offsets[0], t.data_offsets[1])
    )
    widest = None
    for t in ordered:
        if widest is not None and t.data_offsets[0] < widest.data_offsets[1]:
            raise HeaderError(
                ErrorKind.OVERLAPPING_TENSOR_RANGES,
                f"tensor {t.name!r} [{t.data_offsets[0]}, {t.data_offsets[1]}) overlaps "
                f"{widest.name!r} [{widest.data_offsets[0]}, {widest.data_offsets[1]})",
            )
        if widest is None or t.data_offsets[1] > widest.data_offsets[1]:
            widest = t


def parse_header(raw: RawHeader) -> ParsedHeader:
    """Validate a raw header blob and build the typed header.

    Raises:
        HeaderError: on the first structural problem found.
    """
    tree = _decode_tree(raw.blob)

    tensors: Dict[str, TensorDescriptor] = {}
    metadata: Dict[str, str] = {}
    seen = set()
    for name, entry in tree:
        if name in seen:
            raise HeaderError(ErrorKind.DUPLICATE_TENSOR_NAME, f"key {name!r} appears more than once")
        seen.add(name)
        if name == METADATA_KEY:
            metadata = _metadata(entry)
            continue
        tensors[name] = _tensor(name, entry, raw.data_length)

    _check_overlaps(list(tensors.values()))

    return ParsedHeader(
        header_size=raw.header_size,
        data_start=raw.data_start,
        data_length=raw.data_length,
        tensors=tensors,
        metadata=metadata,
    )
