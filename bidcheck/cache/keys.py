"""Structural hashing used for every cache key and batch dedup key.

Two values that differ only in mapping key order produce the same key;
sequence order is significant. The hash is a 32-bit polynomial rolling
hash rendered in base 36: fast and short, not collision resistant.
"""

import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def normalize_structure(value: Any) -> Any:
    """Return a JSON-ready copy of *value* with mapping keys sorted at every level.

    Pydantic models are dumped without their unset (None) fields, sets are
    sorted, enums collapse to their values and dates to ISO strings.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, Mapping):
        return {
            str(k): normalize_structure(v)
            for k, v in sorted(value.items(), key=lambda item: str(item[0]))
        }
    if isinstance(value, (list, tuple)):
        return [normalize_structure(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((normalize_structure(v) for v in value), key=canonical_json)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def canonical_json(value: Any) -> str:
    """Serialize *value* to its canonical string form."""
    return json.dumps(
        normalize_structure(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def polynomial_hash(text: str) -> int:
    """Signed 32-bit ``h = h * 31 + c`` rolling hash, returned as its absolute value."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits: list[str] = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def hash_structure(value: Any) -> str:
    """Short, order-independent key for the semantic content of *value*."""
    return to_base36(polynomial_hash(canonical_json(value)))


# ── Operational dedup projection ────────────────────────────────────────────


def _compact(mapping: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in mapping.items() if v is not None}


def _sorted_strings(values: Any) -> Any:
    if isinstance(values, list):
        return sorted(str(v) for v in values)
    return values


def _pick(obj: Any, *fields: str) -> dict[str, Any] | None:
    if not isinstance(obj, Mapping):
        return None
    return _compact({f: obj.get(f) for f in fields})


def _project_impression(imp: Any) -> Any:
    if not isinstance(imp, Mapping):
        return imp

    banner = imp.get("banner")
    if isinstance(banner, Mapping):
        formats = banner.get("format")
        banner = _compact(
            {
                "w": banner.get("w"),
                "h": banner.get("h"),
                "pos": banner.get("pos"),
                "mimes": _sorted_strings(banner.get("mimes")),
                "format": [_pick(f, "w", "h") for f in formats]
                if isinstance(formats, list)
                else None,
            }
        )

    video = imp.get("video")
    if isinstance(video, Mapping):
        video = _compact(
            {
                "mimes": _sorted_strings(video.get("mimes")),
                "minduration": video.get("minduration"),
                "maxduration": video.get("maxduration"),
                "protocols": video.get("protocols"),
                "w": video.get("w"),
                "h": video.get("h"),
            }
        )

    audio = imp.get("audio")
    if isinstance(audio, Mapping):
        audio = _compact(
            {
                "mimes": _sorted_strings(audio.get("mimes")),
                "minduration": audio.get("minduration"),
                "maxduration": audio.get("maxduration"),
            }
        )

    return _compact(
        {
            "banner": banner,
            "video": video,
            "audio": audio,
            "native": _pick(imp.get("native"), "ver", "request"),
            "bidfloor": imp.get("bidfloor"),
            "bidfloorcur": imp.get("bidfloorcur"),
        }
    )


def request_dedup_key(request: Any) -> str:
    """Key over the fields that decide a bid request's validation/bidding outcome.

    Requests that differ only cosmetically (request id, user data, page URL)
    collapse to the same key. Non-mapping input hashes as-is.
    """
    if not isinstance(request, Mapping):
        return hash_structure(request)

    imps = request.get("imp")
    projection = _compact(
        {
            "imp": [_project_impression(imp) for imp in imps] if isinstance(imps, list) else imps,
            "site": _pick(request.get("site"), "domain"),
            "app": _pick(request.get("app"), "bundle"),
            "device": _pick(request.get("device"), "devicetype"),
            "at": request.get("at"),
            "tmax": request.get("tmax"),
        }
    )
    return hash_structure(projection)
