"""Canonical move notation used whenever two moves are compared.

Engines answer in coordinate notation (``g1f3``, ``e7e8q``) while game
records often carry long algebraic notation (``Ng1-f3``, ``e7-e8=Q``,
``O-O``). Both sides are funnelled through :func:`canonical_move` so that
equivalent moves never compare unequal because of formatting.
"""

from __future__ import annotations

import re

import chess

_COORDINATE_RE = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbn]?)$")
_DECORATIONS_RE = re.compile(r"[+#!?]+$")
_CASTLING = {
    ("O-O", chess.WHITE): "e1g1",
    ("O-O-O", chess.WHITE): "e1c1",
    ("O-O", chess.BLACK): "e8g8",
    ("O-O-O", chess.BLACK): "e8c8",
}


def _normalize_color(mover: chess.Color | str | None) -> chess.Color | None:
    if mover is None or isinstance(mover, bool):
        return mover
    lowered = mover.strip().lower()
    if lowered in {"white", "w"}:
        return chess.WHITE
    if lowered in {"black", "b"}:
        return chess.BLACK
    raise ValueError(f"Unknown mover color: {mover!r}")


def _strip_decorations(text: str) -> str:
    return _DECORATIONS_RE.sub("", text.strip())


def _castling_move(text: str, mover: chess.Color | None) -> str | None:
    token = text.replace("0", "O").upper()
    if token not in {"O-O", "O-O-O"} or mover is None:
        return None
    return _CASTLING[(token, mover)]


def _lexical_move(text: str) -> str | None:
    """Reduce long algebraic or coordinate text to ``from``+``to``+``promo``."""
    cleaned = text.replace("=", "").replace("-", "").replace("x", "").replace(":", "")
    if cleaned[:1] in {"K", "Q", "R", "B", "N"} and len(cleaned) >= 5:
        cleaned = cleaned[1:]
    cleaned = cleaned.lower()
    return cleaned if _COORDINATE_RE.match(cleaned) else None


def _board_move(text: str, candidate: str | None, board: chess.Board) -> str | None:
    if candidate is not None:
        try:
            return board.parse_uci(candidate).uci()
        except ValueError:
            return candidate
    try:
        return board.parse_san(text).uci()
    except ValueError:
        return None


def canonical_move(
    text: str | None,
    *,
    mover: chess.Color | str | None = None,
    board: chess.Board | None = None,
) -> str | None:
    """Return the lowercase coordinate form of ``text``, or None if unrecognised.

    ``mover`` resolves bare castling tokens. With ``board`` the move is also
    checked against the position, which maps king-takes-rook castling to the
    standard king move and accepts short algebraic notation.
    """
    if not text:
        return None
    stripped = _strip_decorations(text)
    if not stripped or stripped == "(none)":
        return None
    color = _normalize_color(mover)
    if color is None and board is not None:
        color = board.turn
    candidate = _castling_move(stripped, color) or _lexical_move(stripped)
    if board is not None:
        return _board_move(stripped, candidate, board)
    return candidate


def moves_match(
    first: str | None,
    second: str | None,
    *,
    mover: chess.Color | str | None = None,
    board: chess.Board | None = None,
) -> bool:
    """Return True when both notations name the same move."""
    left = canonical_move(first, mover=mover, board=board)
    right = canonical_move(second, mover=mover, board=board)
    return left is not None and left == right
