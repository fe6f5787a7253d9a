from __future__ import annotations
import re
import time
from typing import Callable

_NON_WORD = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s_-]+")
_VALID = re.compile(r"^[a-z0-9-]+$")

MAX_SUFFIX_ATTEMPTS = 100


def create_slug(text: str) -> str:
    slug = _NON_WORD.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


def create_curriculum_slug(name: str, publisher: str) -> str:
    return f"{create_slug(name)}-by-{create_slug(publisher)}"


def ensure_unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """base, then base-1, base-2, ... for 100 attempts in total; after that base-<epoch ms>."""
    candidate = base
    for counter in range(1, MAX_SUFFIX_ATTEMPTS):
        if not exists(candidate):
            return candidate
        candidate = f"{base}-{counter}"
    if not exists(candidate):
        return candidate
    return f"{base}-{int(time.time() * 1000)}"


def is_valid_slug(slug: str) -> bool:
    return bool(_VALID.fullmatch(slug)) and 0 < len(slug) <= 200
