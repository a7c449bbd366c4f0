"""Turn game notation into the ordered move list the pipeline consumes."""

from __future__ import annotations

import io
from dataclasses import dataclass

import chess
import chess.pgn

from chessmind.domain.results import BLACK, WHITE
from chessmind.errors import InvalidInput
from chessmind.utils.logger import get_logger

logger = get_logger(__name__)


def color_name(color: chess.Color) -> str:
    return WHITE if color == chess.WHITE else BLACK


@dataclass(frozen=True, slots=True)
class GameMove:
    """One validated move together with the position it was played from."""

    ply: int
    index: int
    mover: str
    san: str
    uci: str
    fen_before: str


@dataclass(frozen=True, slots=True)
class ExtractedGame:
    moves: tuple[GameMove, ...]
    starting_fen: str
    white: str = "Unknown"
    black: str = "Unknown"
    result: str = "*"
    date: str | None = None


def _read_game(pgn: str) -> chess.pgn.Game:
    if not pgn or not pgn.strip():
        raise InvalidInput("Invalid game notation: empty input")
    try:
        game = chess.pgn.read_game(io.StringIO(pgn))
    except (ValueError, KeyError) as exc:
        raise InvalidInput(f"Invalid game notation: {exc}") from exc
    if game is None:
        raise InvalidInput("Invalid game notation: no game found")
    if game.errors:
        raise InvalidInput(f"Invalid game notation: {game.errors[0]}")
    return game


def _header(headers: chess.pgn.Headers, name: str) -> str | None:
    """Return a header value, treating PGN placeholders such as ``?`` as missing."""
    value = (headers.get(name) or "").strip()
    if not value or set(value) <= {"?", "."}:
        return None
    return value


def extract_moves(pgn: str) -> ExtractedGame:
    """Parse ``pgn`` and return its mainline as :class:`GameMove` records.

    Raises:
        InvalidInput: the notation is empty, unreadable, or contains an
            illegal move.
    """
    game = _read_game(pgn)
    board = game.board()
    starting_fen = board.fen()
    moves: list[GameMove] = []
    for ply, move in enumerate(game.mainline_moves()):
        moves.append(
            GameMove(
                ply=ply,
                index=board.fullmove_number,
                mover=color_name(board.turn),
                san=board.san(move),
                uci=move.uci(),
                fen_before=board.fen(),
            )
        )
        board.push(move)
    headers = game.headers
    logger.info("Extracted %s moves from game notation", len(moves))
    return ExtractedGame(
        moves=tuple(moves),
        starting_fen=starting_fen,
        white=_header(headers, "White") or "Unknown",
        black=_header(headers, "Black") or "Unknown",
        result=_header(headers, "Result") or "*",
        date=_header(headers, "Date"),
    )
