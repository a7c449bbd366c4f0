"""Line-level helpers for the UCI text protocol.

Commands are plain strings, one per line. Responses are parsed token by
token: only ``info`` lines that carry a ``score`` and the terminal
``bestmove`` line matter to an evaluation request.
"""

from __future__ import annotations

from dataclasses import dataclass

from chessmind.utils import to_int

UCI = "uci"
UCI_OK = "uciok"
IS_READY = "isready"
READY_OK = "readyok"
NEW_GAME = "ucinewgame"
STOP = "stop"
QUIT = "quit"

MATE_SCORE_BASE = 10000
MATE_DISTANCE_STEP = 10
NO_MOVE = "(none)"


def set_option(name: str, value: object) -> str:
    return f"setoption name {name} value {value}"


def position_fen(fen: str) -> str:
    return f"position fen {fen}"


def go_depth(depth: int) -> str:
    return f"go depth {depth}"


def handshake_commands(threads: int, hash_mb: int) -> list[str]:
    """Return the commands sent after ``uci`` is acknowledged, ending with ``isready``."""
    return [
        set_option("Threads", threads),
        set_option("Hash", hash_mb),
        IS_READY,
    ]


def encode_mate_score(mate_in: int) -> int:
    """Map a signed mate distance onto the centipawn scale.

    Shorter mates give larger magnitudes, so ``mate 1`` outranks ``mate 5``
    and every mate value sits above any ordinary centipawn score. A distance
    of zero means the side to move is already mated.
    """
    sign = 1 if mate_in > 0 else -1
    return sign * (MATE_SCORE_BASE - abs(mate_in) * MATE_DISTANCE_STEP)


@dataclass(frozen=True, slots=True)
class InfoScore:
    """Score carried by a single ``info`` line."""

    score_cp: int
    mate_in: int | None = None
    depth: int | None = None


def parse_info_line(line: str) -> InfoScore | None:
    """Return the score reported by an ``info`` line, or None if it has none."""
    tokens = line.split()
    if not tokens or tokens[0] != "info" or "string" in tokens[:2]:
        return None
    depth = _token_after(tokens, "depth")
    try:
        index = tokens.index("score")
    except ValueError:
        return None
    if index + 2 >= len(tokens):
        return None
    kind, value = tokens[index + 1], to_int(tokens[index + 2])
    if value is None:
        return None
    if kind == "cp":
        return InfoScore(score_cp=value, depth=depth)
    if kind == "mate":
        return InfoScore(score_cp=encode_mate_score(value), mate_in=value, depth=depth)
    return None


def parse_bestmove_line(line: str) -> tuple[bool, str | None]:
    """Return ``(is_bestmove, move)`` for a response line.

    The optional ``ponder`` move is ignored; ``bestmove (none)`` yields None.
    """
    tokens = line.split()
    if not tokens or tokens[0] != "bestmove":
        return False, None
    if len(tokens) < 2 or tokens[1] == NO_MOVE:
        return True, None
    return True, tokens[1]


def _token_after(tokens: list[str], name: str) -> int | None:
    try:
        return to_int(tokens[tokens.index(name) + 1])
    except (ValueError, IndexError):
        return None
