import hashlib
from typing import Iterable

MAX_IDENTIFIER_LENGTH = 64

_VOWELS = frozenset("aeiouAEIOU")


def _strip_vowels(segment: str) -> str:
    if not segment:
        return segment
    return segment[0] + "".join(ch for ch in segment[1:] if ch not in _VOWELS)


def shorten_identifier(name: str, limit: int = MAX_IDENTIFIER_LENGTH) -> str:
    """Fit a generated constraint or index name within ``limit`` characters.

    Names that already fit are returned unchanged. Otherwise vowels are
    dropped from each ``_`` segment (keeping its first letter); if that is
    still too long the name is truncated and suffixed with the first eight
    hex digits of the SHA-1 of the original name, keeping it deterministic.
    """
    if len(name) <= limit:
        return name

    abbreviated = "_".join(_strip_vowels(segment) for segment in name.split("_"))
    if len(abbreviated) <= limit:
        return abbreviated

    digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:8]
    prefix = abbreviated[: limit - 9].rstrip("_")
    return f"{prefix}_{digest}"


def foreign_key_name(table: str, foreign_table: str, columns: Iterable[str]) -> str:
    return shorten_identifier(f"fk_{table}_{foreign_table}_{'_'.join(columns)}")


def index_name(table: str, columns: Iterable[str], kind: str) -> str:
    return shorten_identifier(f"{table}_{'_'.join(columns)}_{kind}".lower())
