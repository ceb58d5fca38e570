"""
Tests for the MCTS search tree, tree policy, rollouts and decisions.

Most tests drive the search one cycle at a time through create_root,
SearchContext and run_cycle, so the tree can be inspected before it is
released.
"""
import gc
import math
import random
import weakref

import pytest

from nogo_ai.core.board import Board
from nogo_ai.core.constants import Side, MoveResult, UNVISITED_SCORE
from nogo_ai.mcts import search
from nogo_ai.mcts.config import MCTSConfig
from nogo_ai.mcts.node import MCTSNode, uct_score
from nogo_ai.mcts.search import (
    SearchContext, SearchInvariantError,
    create_root, destroy_tree, run_cycle, rollout, backpropagate,
    extract_decision, mcts_search, count_nodes, select_path,
    get_principal_variation, get_action_statistics,
)


def terminal_for_black() -> Board:
    """2x2 position in which black has no legal placement."""
    return Board.from_rows([
        ".O",
        "O.",
    ])


def build_tree(board: Board, side: Side, cycles: int, seed: int = 0, c: float = 1.41):
    """Run a number of cycles and return (root, context) without releasing the tree."""
    root = create_root(board)
    context = SearchContext.for_decision(side, board.size, random.Random(seed))
    for _ in range(cycles):
        run_cycle(root, context, c)
    return root, context


def walk(root: MCTSNode):
    stack = [root]
    while stack:
        node = stack.pop()
        stack.extend(node.children)
        yield node


def test_uct_score():
    assert uct_score(0.0, 0, 10, 1.0) == UNVISITED_SCORE
    expected = 3 / 4 + 0.5 * math.sqrt(math.log(10) / 4)
    assert uct_score(3.0, 4, 10, 0.5) == pytest.approx(expected)
    # ln(1) == 0 leaves only the win rate
    assert uct_score(1.0, 1, 1, 2.0) == pytest.approx(1.0)


def test_root_holds_its_own_copy():
    board = Board(5)
    root = create_root(board)
    assert root.state == board
    board.place(0, Side.BLACK)
    assert root.state != board
    assert root.visit_count == 0
    assert root.selection_score == UNVISITED_SCORE


def test_side_to_move_alternates_with_depth():
    context = SearchContext.for_decision(Side.WHITE, 3, random.Random(0))
    assert context.side_to_move(MCTSNode(Board(3), depth=0)) is Side.WHITE
    assert context.side_to_move(MCTSNode(Board(3), depth=1)) is Side.BLACK
    assert context.side_to_move(MCTSNode(Board(3), depth=2)) is Side.WHITE


def test_single_cycle_creates_one_child():
    """One cycle from an empty board: one root child, visited once."""
    board = Board()
    root, context = build_tree(board, Side.BLACK, 1)

    assert len(root.children) == 1
    child = root.children[0]
    assert child.visit_count == 1
    assert child.rollout_count == 1
    assert root.visit_count == 1
    assert root.rollout_count == 0
    assert context.total_simulations == 1

    move = extract_decision(root, board, Side.BLACK)
    assert move is not None
    after = board.copy()
    assert move.apply(after) == MoveResult.LEGAL
    assert after == child.state
    assert move == child.move


def test_single_cycle_search():
    move, stats = mcts_search(Board(), Side.BLACK, MCTSConfig(iterations=1, seed=3))
    assert move is not None
    assert list(stats["action_visits"].values()) == [1]
    assert list(stats["action_visits"]) == [move.to_text(9)]
    assert stats["simulations"] == 1
    assert not stats["no_move"]


def test_zero_budget_reports_no_move():
    """No cycles means no children, even though legal moves exist."""
    board = Board()
    assert board.has_legal_move(Side.BLACK)
    move, stats = mcts_search(board, Side.BLACK, MCTSConfig(iterations=0))
    assert move is None
    assert stats["no_move"]
    assert stats["action_visits"] == {}
    assert stats["released_nodes"] == 1


def test_terminal_root():
    """A root without legal moves is visited on every cycle but never expanded."""
    board = terminal_for_black()
    root, context = build_tree(board, Side.BLACK, 5)

    assert root.children == []
    assert root.visit_count == 5
    assert root.rollout_count == 5
    assert root.legal_move_count == 0
    # Black cannot move, so every rollout is lost
    assert root.win_count == 0
    assert extract_decision(root, board, Side.BLACK) is None

    move, _ = mcts_search(board, Side.BLACK, MCTSConfig(iterations=5, seed=1))
    assert move is None


def test_terminal_root_for_other_searcher():
    """The same position wins every rollout for white when black is to move."""
    board = terminal_for_black()
    root = create_root(board)
    context = SearchContext.for_decision(Side.WHITE, board.size, random.Random(0))
    # Searching for white, but the node is handed to the rollout with black to move
    win = rollout(root.state, Side.BLACK, Side.WHITE, context.rollout_moves, context.rng)
    assert win is True


def test_rollout_first_side_without_move_loses():
    board = terminal_for_black()
    moves = SearchContext.for_decision(Side.BLACK, 2, random.Random(0)).rollout_moves
    assert rollout(board, Side.BLACK, Side.BLACK, moves, random.Random(0)) is False


def test_rollout_leaves_board_untouched():
    board = Board(5)
    board.place(12, Side.BLACK)
    before = board.copy()
    context = SearchContext.for_decision(Side.WHITE, 5, random.Random(4))
    rollout(board, Side.WHITE, Side.WHITE, context.rollout_moves, context.rng)
    assert board == before


def test_backpropagate_updates_whole_path():
    context = SearchContext.for_decision(Side.BLACK, 3, random.Random(0))
    nodes = [MCTSNode(Board(3), depth=depth) for depth in range(3)]
    context.path.extend(nodes)

    backpropagate(context, True, 1.0)

    assert context.total_simulations == 1
    assert context.path == []
    assert context.max_depth == 2
    for node in nodes:
        assert node.visit_count == 1
        assert node.win_count == 1.0
        assert node.selection_score == pytest.approx(1.0)

    context.path.extend(nodes[:2])
    backpropagate(context, False, 1.0)
    assert context.total_simulations == 2
    expected = 0.5 + math.sqrt(math.log(2) / 2)
    assert nodes[0].selection_score == pytest.approx(expected)
    assert nodes[1].selection_score == pytest.approx(expected)
    assert nodes[2].visit_count == 1


def test_statistics_conservation():
    """Visits flow root to leaf: each node's visits are its rollouts plus its children's visits."""
    board = Board(5)
    root, context = build_tree(board, Side.BLACK, 300, seed=11)

    assert root.visit_count == 300
    assert context.total_simulations == 300
    assert sum(node.rollout_count for node in walk(root)) == 300

    for node in walk(root):
        assert node.visit_count == node.rollout_count + sum(c.visit_count for c in node.children)
        assert 0 <= node.win_count <= node.visit_count


def test_children_match_legal_moves():
    board = Board(4)
    root, context = build_tree(board, Side.WHITE, 200, seed=5)

    for node in walk(root):
        if not node.is_expanded():
            assert node.children == []
            continue
        side = context.side_to_move(node)
        legal = node.state.legal_moves(side)
        assert node.legal_move_count == len(legal)
        assert len(node.children) <= len(legal)
        # No position is represented twice among siblings
        states = [child.state for child in node.children]
        assert len(set(states)) == len(states)
        for child in node.children:
            assert child.move in legal
            assert child.depth == node.depth + 1


def test_unvisited_moves_are_tried_first():
    """Every root move gets a child and a visit before any child is revisited."""
    board = Board(5)
    root, _ = build_tree(board, Side.BLACK, 25, seed=2)
    assert len(root.children) == 25
    assert all(child.visit_count == 1 for child in root.children)
    assert root.is_fully_expanded()

    run_cycle(root, SearchContext.for_decision(Side.BLACK, 5, random.Random(0)), 1.41)
    assert len(root.children) == 25
    assert sorted(child.visit_count for child in root.children)[-1] == 2


def test_select_child_prefers_unvisited():
    parent = MCTSNode(Board(3))
    for position in range(4):
        child = MCTSNode(Board(3), depth=1)
        child.state.place(position, Side.BLACK)
        parent.children.append(child)
    for child in parent.children[:3]:
        child.visit_count = 10
        child.win_count = 10.0
        child.selection_score = 100.0

    rng = random.Random(0)
    for _ in range(20):
        assert parent.select_child(rng) is parent.children[3]


def test_select_child_highest_score_first_on_ties():
    parent = MCTSNode(Board(3))
    scores = [0.5, 0.9, 0.9, 0.1]
    for score in scores:
        child = MCTSNode(Board(3), depth=1)
        child.visit_count = 1
        child.selection_score = score
        parent.children.append(child)
    assert parent.select_child(random.Random(0)) is parent.children[1]


def test_select_path_records_walk():
    board = Board(3)
    root, context = build_tree(board, Side.BLACK, 9, seed=0)
    leaf = select_path(root, context)
    assert context.path[0] is root
    assert context.path[-1] is leaf
    for parent, child in zip(context.path, context.path[1:]):
        assert child in parent.children


def test_decision_is_most_visited_child():
    board = Board(4)
    root, _ = build_tree(board, Side.BLACK, 120, seed=8)
    best = max(root.children, key=lambda child: child.visit_count)
    first_best = next(c for c in root.children if c.visit_count == best.visit_count)
    move = extract_decision(root, board, Side.BLACK)
    assert move == first_best.move


def test_decision_tie_goes_to_first_child():
    board = Board(3)
    root, _ = build_tree(board, Side.BLACK, 9, seed=6)
    assert all(child.visit_count == 1 for child in root.children)
    assert extract_decision(root, board, Side.BLACK) == root.children[0].move


def test_mismatched_position_is_an_invariant_violation():
    root, _ = build_tree(Board(5), Side.BLACK, 3)
    other = Board(5)
    other.place(0, Side.WHITE)
    with pytest.raises(SearchInvariantError):
        extract_decision(root, other, Side.BLACK)
    assert issubclass(SearchInvariantError, AssertionError)


def test_search_is_deterministic():
    """Same seed, position and budget give the same move and root visits."""
    board = Board(5)
    board.place(6, Side.BLACK)
    board.place(18, Side.WHITE)
    config = MCTSConfig(iterations=150, exploration_weight=0.8, seed=42)

    move_a, stats_a = mcts_search(board, Side.BLACK, config)
    move_b, stats_b = mcts_search(board, Side.BLACK, config)

    assert move_a == move_b
    assert list(stats_a["action_visits"].items()) == list(stats_b["action_visits"].items())
    assert stats_a["node_count"] == stats_b["node_count"]


def test_destroy_tree_releases_all_nodes():
    root, _ = build_tree(Board(4), Side.BLACK, 60, seed=3)
    total = count_nodes(root)
    assert destroy_tree(root) == total
    assert root.children == []
    assert count_nodes(root) == 1


def test_no_node_survives_a_decision(monkeypatch):
    refs = []
    original_create_root = search.create_root
    original_expand = MCTSNode.expand

    def recording_create_root(board):
        root = original_create_root(board)
        refs.append(weakref.ref(root))
        return root

    def recording_expand(self, candidates, rng):
        child = original_expand(self, candidates, rng)
        if child is not None:
            refs.append(weakref.ref(child))
        return child

    monkeypatch.setattr(search, "create_root", recording_create_root)
    monkeypatch.setattr(MCTSNode, "expand", recording_expand)

    move, stats = mcts_search(Board(4), Side.BLACK, MCTSConfig(iterations=40, seed=9))
    gc.collect()

    assert move is not None
    assert len(refs) == stats["released_nodes"]
    assert all(ref() is None for ref in refs)


def test_analysis_helpers():
    board = Board(4)
    root, _ = build_tree(board, Side.BLACK, 80, seed=12)
    variation = get_principal_variation(root, max_depth=3)
    assert 1 <= len(variation) <= 3
    assert variation[0][0] == extract_decision(root, board, Side.BLACK)

    action_stats = get_action_statistics(root, board.size)
    assert len(action_stats) == len(root.children)
    assert sum(entry["visits"] for entry in action_stats.values()) == root.visit_count
