"""Rules that repair object keys written by earlier upload code.

Two malformations are known:

* a duplicated-extension artifact, where an uppercase format tag is directly
  followed by the same tag in lowercase (``poster/123PNGpng``), and
* a missing separator before ``mp4`` (``video/123mp4``).

Both rules are idempotent: a repaired key never matches either pattern again.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = ["repair_key", "repair_movie_keys"]

# Uppercase format tag and lowercase extension, each 3 or 4 characters long.
_UPPER_TAG_RE = re.compile(r"[A-Z][A-Z0-9]{2,3}")
_LOWER_EXT_RE = re.compile(r"[a-z][a-z0-9]{2,3}")

_IMAGE_KEY_FIELDS = ("posterKey", "thumbnailKey")


def _fix_duplicated_extension(key: str) -> Optional[str]:
    for length in (4, 3):
        if len(key) <= 2 * length:
            continue
        tag, ext = key[-2 * length : -length], key[-length:]
        if (
            _UPPER_TAG_RE.fullmatch(tag)
            and _LOWER_EXT_RE.fullmatch(ext)
            and tag.lower() == ext
        ):
            stem = key[: -2 * length].rstrip(".")
            return f"{stem}.{ext}"
    return None


def _fix_missing_mp4_dot(key: str) -> Optional[str]:
    if "mp4" not in key or ".mp4" in key:
        return None
    head, _, tail = key.rpartition("mp4")
    return f"{head}.mp4{tail}"


def repair_key(key: str) -> Tuple[str, List[str]]:
    """Return ``(fixed_key, applied_rule_descriptions)`` for a single key."""

    fixes: List[str] = []
    current = key

    fixed = _fix_duplicated_extension(current)
    if fixed is not None:
        fixes.append(f"duplicated extension: '{current}' -> '{fixed}'")
        current = fixed

    fixed = _fix_missing_mp4_dot(current)
    if fixed is not None:
        fixes.append(f"missing '.' before mp4: '{current}' -> '{fixed}'")
        current = fixed

    return current, fixes


def repair_movie_keys(doc: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Scan a movie's media keys and compute the corrections.

    Returns the fields to ``$set`` (only those that changed) and one
    human-readable description per rewrite, prefixed by the field it touched.
    Blank keys are skipped.
    """

    changes: Dict[str, Any] = {}
    fixes: List[str] = []

    video_urls = dict(doc.get("videoUrls") or {})
    videos_changed = False
    for quality, key in video_urls.items():
        if not isinstance(key, str) or not key.strip():
            continue
        fixed, applied = repair_key(key)
        if applied:
            video_urls[quality] = fixed
            videos_changed = True
            fixes.extend(f"videoUrls.{quality}: {desc}" for desc in applied)
    if videos_changed:
        changes["videoUrls"] = video_urls

    for field in _IMAGE_KEY_FIELDS:
        key = doc.get(field)
        if not isinstance(key, str) or not key.strip():
            continue
        fixed, applied = repair_key(key)
        if applied:
            changes[field] = fixed
            fixes.extend(f"{field}: {desc}" for desc in applied)

    return changes, fixes
