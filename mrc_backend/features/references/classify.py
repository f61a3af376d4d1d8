"""
Reference value classification and identifier extraction.
"""
from __future__ import annotations

import re
from typing import Any, Optional

from ...config import DEFAULT_DELIVERY_MARKER, INLINE_PAYLOAD_MIN_LENGTH, LOCAL_PATH_PREFIX
from ...shared import ReferenceKind

# <anything>/upload/[v<digits>/]<public id>[.<ext>]
_DELIVERY_URL_RE = re.compile(r"/upload/(?:v\d+/)?(.+?)(?:\.[^./]+)?$")


def is_inline_payload(value: str, inline_min_length: int = INLINE_PAYLOAD_MIN_LENGTH) -> bool:
    return value.startswith("data:") or len(value) > int(inline_min_length)


def is_remote_url(value: Any, delivery_marker: str = DEFAULT_DELIVERY_MARKER) -> bool:
    return isinstance(value, str) and bool(delivery_marker) and delivery_marker in value


def is_local_path(value: str) -> bool:
    if value.startswith(LOCAL_PATH_PREFIX):
        return True
    return not (value.startswith("http://") or value.startswith("https://") or value.startswith("data:"))


def classify_reference(
    value: Any,
    *,
    delivery_marker: str = DEFAULT_DELIVERY_MARKER,
    inline_min_length: int = INLINE_PAYLOAD_MIN_LENGTH,
) -> Optional[ReferenceKind]:
    """
    Classify a stored reference value.

    Returns None for empty values. A value that names the store host is
    remote whatever its length; only a `data:` URI outranks it.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    if value.startswith("data:"):
        return "inline"
    if is_remote_url(value, delivery_marker):
        return "remote"
    if is_inline_payload(value, inline_min_length):
        return "inline"
    if is_local_path(value):
        return "local"
    return "external"


def extract_asset_id(url: Any) -> Optional[str]:
    """Public id of a delivery URL, or None when the URL has another shape."""
    if not isinstance(url, str) or not url:
        return None
    path = url.strip().split("#", 1)[0].split("?", 1)[0]
    m = _DELIVERY_URL_RE.search(path)
    if not m:
        return None
    return m.group(1) or None
