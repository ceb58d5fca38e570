"""
Tests for the NoGo board, moves and move text.

These cover the placement rules (occupied points, suicide and capture are
illegal), value semantics of boards, and the "A1" move encoding.
"""
import pytest

from nogo_ai.core.board import Board
from nogo_ai.core.actions import Move, candidate_moves, parse_move
from nogo_ai.core.constants import Side, MoveResult, EMPTY


def test_empty_board_moves():
    """Every point of an empty board is a legal first move."""
    board = Board()
    moves = board.legal_moves(Side.BLACK)
    assert len(moves) == 81
    assert [move.position for move in moves] == list(range(81))
    assert all(move.side is Side.BLACK for move in moves)


def test_occupied_point_is_illegal():
    board = Board(5)
    assert board.place(12, Side.BLACK) == MoveResult.LEGAL
    assert board.place(12, Side.WHITE) == MoveResult.ILLEGAL
    assert board.place(12, Side.BLACK) == MoveResult.ILLEGAL
    assert board.place(25, Side.BLACK) == MoveResult.ILLEGAL
    assert board.place(-1, Side.BLACK) == MoveResult.ILLEGAL


def test_suicide_is_illegal():
    """A stone with no liberty may not be placed."""
    board = Board.from_rows([
        ".O.",
        "O..",
        "...",
    ])
    before = board.copy()
    assert board.place(0, Side.BLACK) == MoveResult.ILLEGAL
    assert board == before
    assert board.get(0) == EMPTY

    # White joins its own stones there, keeping liberties
    assert board.place(0, Side.WHITE) == MoveResult.LEGAL


def test_capture_is_illegal():
    """Taking the last liberty of an opponent group is forbidden."""
    board = Board.from_rows([
        "OX.",
        "...",
        "...",
    ])
    assert board.place(3, Side.BLACK) == MoveResult.ILLEGAL
    assert board.get(3) == EMPTY
    assert board.place(3, Side.WHITE) == MoveResult.LEGAL


def test_group_liberties_are_shared():
    """A group survives as long as any of its stones touches an empty point."""
    board = Board.from_rows([
        "XX.",
        "OO.",
        "...",
    ])
    # Black group {0, 1} keeps the liberty at 2 after white plays 5
    assert board.place(5, Side.WHITE) == MoveResult.LEGAL
    # White playing 2 would take black's last liberty
    assert board.place(2, Side.WHITE) == MoveResult.ILLEGAL


def test_side_without_moves():
    board = Board.from_rows([
        ".O",
        "O.",
    ])
    assert board.legal_moves(Side.BLACK) == []
    assert not board.has_legal_move(Side.BLACK)
    assert board.has_legal_move(Side.WHITE)


def test_board_copy_and_equality():
    board = Board(4)
    copy = board.copy()
    assert copy == board
    assert hash(copy) == hash(board)

    copy.place(5, Side.WHITE)
    assert copy != board
    assert board.stone_count() == 0
    assert copy.stone_count(Side.WHITE) == 1
    assert copy.stone_count(Side.BLACK) == 0

    assert Board(4) != Board(5)


def test_board_rendering():
    board = Board.from_rows([
        "X..",
        "...",
        "..O",
    ])
    lines = str(board).splitlines()
    # Last row printed first
    assert lines[0] == "3 . . O"
    assert lines[-2] == "1 X . ."
    assert lines[-1] == "  A B C"
    assert board.to_array().shape == (3, 3)


def test_invalid_boards():
    with pytest.raises(ValueError):
        Board(1)
    with pytest.raises(ValueError):
        Board(20)
    with pytest.raises(ValueError):
        Board.from_rows(["..", "..."])
    with pytest.raises(ValueError):
        Board.from_rows([".?", ".."])


def test_move_apply_matches_place():
    board = Board(3)
    move = Move(4, Side.BLACK)
    assert move.apply(board) == MoveResult.LEGAL
    assert board.get(4) == Side.BLACK.value
    assert move.apply(board) == MoveResult.ILLEGAL


def test_candidate_moves_cover_board():
    moves = candidate_moves(Side.WHITE, 4)
    assert [move.position for move in moves] == list(range(16))
    assert {move.side for move in moves} == {Side.WHITE}


def test_move_text():
    assert parse_move("A1", Side.BLACK) == Move(0, Side.BLACK)
    assert parse_move("c3", Side.WHITE) == Move(20, Side.WHITE)
    assert parse_move(" I9 ", Side.BLACK) == Move(80, Side.BLACK)
    assert Move(20, Side.WHITE).to_text() == "C3"
    assert Move(7, Side.BLACK).to_text(5) == "C2"
    assert parse_move("C2", Side.BLACK, 5).position == 7


@pytest.mark.parametrize("text", ["", "A", "Z1", "A0", "A10", "J1", "AB"])
def test_invalid_move_text(text):
    with pytest.raises(ValueError):
        parse_move(text, Side.BLACK, 9)


def test_move_dict_round_trip():
    move = Move(13, Side.WHITE)
    assert Move.from_dict(move.to_dict()) == move


def test_side_names():
    assert Side.from_name("black") is Side.BLACK
    assert Side.from_name("WHITE") is Side.WHITE
    assert Side.from_name("w") is Side.WHITE
    assert Side.BLACK.opponent is Side.WHITE
    assert Side.WHITE.opponent is Side.BLACK
    with pytest.raises(ValueError):
        Side.from_name("red")
