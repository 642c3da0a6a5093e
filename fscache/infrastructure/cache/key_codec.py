"""Key derivation for cache entries.

Turns logical keys into filesystem-safe entry names and builds deterministic
keys for proxied method calls from a canonical, type-tagged encoding of the
call arguments.
"""

import dataclasses
import datetime
import decimal
import enum
import hashlib
import json
import re
import uuid
from pathlib import PurePath
from typing import Any, Mapping, Optional, Sequence

from fscache.domain.exceptions import CacheSerializationError
from fscache.domain.models.common import CacheKey, EncodedKey

READABLE_PREFIX_LENGTH = 40
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def encode(raw_key: str) -> EncodedKey:
    """Derives a filesystem entry name from a logical key.

    The name keeps a short sanitized prefix of the key for diagnosability and
    ends with the sha256 of the full key, so distinct keys never share a file.
    It never contains path separators and never starts with a dot.
    """
    digest = hashlib.sha256(raw_key.encode("utf-8", "surrogatepass")).hexdigest()
    readable = _UNSAFE_CHARS.sub("_", raw_key[:READABLE_PREFIX_LENGTH]).strip("_-")
    return EncodedKey(f"{readable or 'key'}-{digest}")


def type_id(obj: Any) -> str:
    """Identifies the class of ``obj`` as 'module.QualName'."""
    cls = obj if isinstance(obj, type) else type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


def encode_call(
    target_type: str,
    method: str,
    args: Sequence[Any],
    kwargs: Optional[Mapping[str, Any]] = None,
) -> CacheKey:
    """Builds the cache key of a method call.

    Args:
        target_type: Identifier of the target's class (see ``type_id``).
        method: Name of the invoked method.
        args: Positional arguments, in call order.
        kwargs: Keyword arguments; their order does not matter.

    Returns:
        A key of the form '<target_type>.<method>:<sha256 hex>'.

    Raises:
        CacheSerializationError: If an argument has no canonical encoding.
    """
    try:
        payload = canonical_bytes([list(args), dict(kwargs or {})])
    except RecursionError as e:
        # Self-referential containers have no finite encoding.
        raise CacheSerializationError(
            f"Cannot build a cache key for {target_type}.{method}: arguments are nested too deeply or cyclic"
        ) from e
    hasher = hashlib.sha256()
    for part in (target_type.encode("utf-8", "surrogatepass"), method.encode("utf-8", "surrogatepass"), payload):
        hasher.update(len(part).to_bytes(8, "big"))
        hasher.update(part)
    return CacheKey(f"{target_type}.{method}:{hasher.hexdigest()}")


def canonical_bytes(value: Any) -> bytes:
    """Serializes ``value`` into a stable, type-tagged byte sequence.

    The output is ASCII, so strings holding lone surrogates encode too.
    """
    return json.dumps(_tag(value), separators=(",", ":"), ensure_ascii=True).encode("ascii")


def _sort_token(tagged: Any) -> str:
    return json.dumps(tagged, separators=(",", ":"), ensure_ascii=False)


def _tag(value: Any) -> Any:
    # Order matters: bool before int, Enum before its mixin types,
    # datetime before date.
    if value is None:
        return ["none"]
    if isinstance(value, bool):
        return ["bool", value]
    if isinstance(value, enum.Enum):
        return ["enum", type_id(value), _tag(value.value)]
    if isinstance(value, int):
        return ["int", str(value)]
    if isinstance(value, float):
        return ["float", repr(value)]
    if isinstance(value, str):
        return ["str", value]
    if isinstance(value, (bytes, bytearray)):
        return ["bytes", bytes(value).hex()]
    if isinstance(value, decimal.Decimal):
        return ["decimal", str(value)]
    if isinstance(value, uuid.UUID):
        return ["uuid", str(value)]
    if isinstance(value, datetime.datetime):
        return ["datetime", value.isoformat()]
    if isinstance(value, datetime.date):
        return ["date", value.isoformat()]
    if isinstance(value, datetime.time):
        return ["time", value.isoformat()]
    if isinstance(value, PurePath):
        return ["path", value.as_posix()]
    if isinstance(value, tuple):
        return ["tuple", [_tag(item) for item in value]]
    if isinstance(value, list):
        return ["list", [_tag(item) for item in value]]
    if isinstance(value, (set, frozenset)):
        return ["set", sorted((_tag(item) for item in value), key=_sort_token)]
    if isinstance(value, Mapping):
        pairs = [[_tag(k), _tag(v)] for k, v in value.items()]
        return ["dict", sorted(pairs, key=lambda pair: _sort_token(pair[0]))]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return ["dataclass", type_id(value), _tag(fields)]
    raise CacheSerializationError(
        f"Cannot build a cache key from a value of type {type_id(value)}"
    )
