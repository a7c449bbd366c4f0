import chess
import pytest

from chessmind.move_notation import canonical_move, moves_match


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("e2e4", "e2e4"),
        ("E2E4", "e2e4"),
        ("e2-e4", "e2e4"),
        ("Ng1-f3", "g1f3"),
        ("Ng1f3", "g1f3"),
        ("Bf1xb5+", "f1b5"),
        ("e7-e8=Q", "e7e8q"),
        ("e7e8q", "e7e8q"),
        ("d7xc8=N#", "d7c8n"),
        ("Qd1-h5!?", "d1h5"),
    ],
)
def test_canonical_move_without_board(text: str, expected: str) -> None:
    assert canonical_move(text) == expected


@pytest.mark.parametrize("text", [None, "", "   ", "(none)", "Nf3", "z9z9", "hello"])
def test_unrecognised_text_has_no_canonical_form(text: str | None) -> None:
    assert canonical_move(text) is None


@pytest.mark.parametrize(
    ("text", "mover", "expected"),
    [
        ("O-O", "white", "e1g1"),
        ("O-O-O", "w", "e1c1"),
        ("0-0", "black", "e8g8"),
        ("O-O-O+", chess.BLACK, "e8c8"),
    ],
)
def test_castling_uses_mover(text: str, mover: object, expected: str) -> None:
    assert canonical_move(text, mover=mover) == expected


def test_castling_without_mover_is_unresolved() -> None:
    assert canonical_move("O-O") is None


def test_unknown_mover_is_rejected() -> None:
    with pytest.raises(ValueError):
        canonical_move("O-O", mover="purple")


def test_board_resolves_short_algebraic() -> None:
    board = chess.Board()

    assert canonical_move("Nf3", board=board) == "g1f3"
    assert canonical_move("e4", board=board) == "e2e4"


def test_board_maps_king_takes_rook_castling() -> None:
    board = chess.Board("r3k2r/pppppppp/8/8/8/8/PPPPPPPP/R3K2R w KQkq - 0 1")

    assert canonical_move("e1h1", board=board) == "e1g1"
    assert canonical_move("O-O", board=board) == "e1g1"


def test_equivalent_notations_match() -> None:
    assert moves_match("g1f3", "Ng1-f3")
    assert moves_match("e7e8q", "e7-e8=Q")
    assert moves_match("e1g1", "O-O", mover="white")


def test_different_moves_do_not_match() -> None:
    assert not moves_match("e2e4", "d2d4")
    assert not moves_match("e7e8q", "e7e8n")


def test_missing_best_move_never_matches() -> None:
    assert not moves_match(None, "e2e4")
    assert not moves_match("(none)", "(none)")
    assert not moves_match(None, None)


def test_board_aware_match_across_notations() -> None:
    board = chess.Board()

    assert moves_match("g1f3", "Nf3", board=board)
    assert not moves_match("g1f3", "Nc3", board=board)
