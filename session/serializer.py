"""
Serializers turning session records into the strings stored in Redis.

A serializer is any object with ``encode(record) -> str`` and
``decode(str) -> record``. Both must be free of side effects.
"""

import json
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Serializer(Protocol):
    def encode(self, record: Any) -> str:
        ...

    def decode(self, data: str) -> Any:
        ...


class JSONSerializer:
    """Default serializer: compact JSON via the standard library."""

    def encode(self, record: Any) -> str:
        return json.dumps(record, separators=(",", ":"))

    def decode(self, data: str) -> Any:
        return json.loads(data)


class _FunctionPairSerializer:
    """Adapts a stringify/parse (or dumps/loads) pair to the Serializer protocol."""

    def __init__(self, encode, decode):
        self._encode = encode
        self._decode = decode

    def encode(self, record: Any) -> str:
        return self._encode(record)

    def decode(self, data: str) -> Any:
        return self._decode(data)


def as_serializer(candidate: Any = None) -> Serializer:
    """
    Resolve the serializer a store should use.

    Accepts None (JSON), a Serializer, or any object exposing a
    ``stringify``/``parse`` or ``dumps``/``loads`` pair, such as the
    ``json`` module itself.

    Raises:
        TypeError: If the candidate exposes none of those method pairs.
    """
    if candidate is None:
        return JSONSerializer()
    if isinstance(candidate, Serializer):
        return candidate
    for encode_name, decode_name in (("stringify", "parse"), ("dumps", "loads")):
        encode = getattr(candidate, encode_name, None)
        decode = getattr(candidate, decode_name, None)
        if callable(encode) and callable(decode):
            return _FunctionPairSerializer(encode, decode)
    raise TypeError(
        f"{type(candidate).__name__} is not a serializer: expected encode/decode, "
        "stringify/parse or dumps/loads"
    )
