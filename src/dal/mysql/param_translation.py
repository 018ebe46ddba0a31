from typing import Any, List, Optional, Sequence, Tuple

from common.errors import ErrorCode, ReasonCodedError


class PlaceholderTranslationError(ReasonCodedError, ValueError):
    """Raised when ``?`` placeholders and bindings do not line up."""

    def __init__(self, message: str) -> None:
        super().__init__(message, reason_code=ErrorCode.PLACEHOLDER_MISMATCH)


_QUOTES = ("'", '"', "`")
_PLACEHOLDER = object()


def _split_placeholders(sql: str) -> List[Any]:
    """Split SQL into text pieces and placeholder markers, skipping quoted text."""
    pieces: List[Any] = []
    quote: Optional[str] = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote is not None:
            if ch == quote and i + 1 < len(sql) and sql[i + 1] == quote:
                pieces.append(ch * 2)
                i += 2
                continue
            if ch == "\\" and quote != "`" and i + 1 < len(sql):
                pieces.append(sql[i : i + 2])
                i += 2
                continue
            if ch == quote:
                quote = None
            pieces.append(ch)
        elif ch in _QUOTES:
            quote = ch
            pieces.append(ch)
        elif ch == "?":
            pieces.append(_PLACEHOLDER)
        else:
            pieces.append(ch)
        i += 1
    return pieces


def translate_qmark_params_to_mysql(
    sql: str, params: Optional[Sequence[Any]]
) -> Tuple[str, Optional[List[Any]]]:
    """Translate ``?`` placeholders to the ``%s`` style used by pymysql.

    Placeholders inside quoted literals or identifiers are left alone. When
    bindings are present pymysql interpolates the whole statement, so every
    literal ``%`` is doubled. Without bindings the SQL is passed through and
    ``None`` is returned in place of the parameter list.
    """
    bindings = list(params or [])
    pieces = _split_placeholders(sql)
    placeholders = sum(1 for piece in pieces if piece is _PLACEHOLDER)
    if placeholders != len(bindings):
        raise PlaceholderTranslationError(
            f"Placeholder count mismatch: {placeholders} placeholder(s), "
            f"{len(bindings)} binding(s)."
        )
    if not bindings:
        return sql, None

    translated = "".join(
        "%s" if piece is _PLACEHOLDER else piece.replace("%", "%%") for piece in pieces
    )
    return translated, bindings
