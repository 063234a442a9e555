"""
Wire encodings shared by every Vortex SDK.

Tokens are signed over the exact bytes produced here, so these helpers must
match the Node.js implementation (``Buffer.toString('base64url')`` and
``JSON.stringify``) byte for byte.
"""

import base64
import json
import math
import re
from typing import Any

_PADDING = {2: "==", 3: "="}

# A surrogate pair, or a lone surrogate
_SURROGATES = re.compile("[\ud800-\udbff][\udc00-\udfff]|[\ud800-\udfff]")


def base64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def base64url_decode(value: str) -> bytes:
    """
    Decode base64url, tolerating both padded and unpadded input.

    Raises:
        ValueError: If ``value`` is not valid base64url
    """
    normalized = value.replace("-", "+").replace("_", "/")
    if not normalized.endswith("="):
        normalized += _PADDING.get(len(normalized) % 4, "")
    return base64.b64decode(normalized, validate=True)


def _normalize_numbers(value: Any) -> Any:
    # JSON.stringify renders 3.0 as 3 and has no representation for NaN/Infinity
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"Cannot serialize non-finite number: {value}")
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, dict):
        return {k: _normalize_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(v) for v in value]
    return value


def canonical_json(value: Any) -> bytes:
    """
    Serialize ``value`` to compact UTF-8 JSON, keeping mapping insertion order.

    Args:
        value: JSON-compatible value (dicts, lists, str, int, float, bool, None)

    Returns:
        UTF-8 encoded JSON bytes with no insignificant whitespace
    """
    text = json.dumps(
        _normalize_numbers(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return _SURROGATES.sub(_fix_surrogates, text).encode("utf-8")


def _fix_surrogates(match: "re.Match[str]") -> str:
    # Pairs become the character they encode, lone halves are \u-escaped
    # like JSON.stringify does
    chars = match.group()
    if len(chars) == 2:
        return chars.encode("utf-16-le", "surrogatepass").decode("utf-16-le")
    return "\\u%04x" % ord(chars)
