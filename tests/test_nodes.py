import pytest

from nodes import ABORT, COMPLETE, Item, Nodes, ToItem, ToNextIndex, build_nodes
from placements import PieceBlocks, enumerate_placements


def _count_paths(nodes, index_id=0):
    node = nodes.index(index_id)
    if isinstance(node, ToItem):
        return sum(_count_paths(nodes, it.next_index_id) for it in nodes.items_of(node))
    if isinstance(node, ToNextIndex):
        return _count_paths(nodes, node.index_id)
    return 1 if node == COMPLETE else 0


def test_build_single_slot(i_slot_board):
    placements = enumerate_placements(i_slot_board)
    nodes = build_nodes(i_slot_board, placements)
    assert nodes.indexes == [ToItem(0, 1), COMPLETE]
    assert nodes.items == [Item(placements[0], 1)]
    assert nodes.head_index_id() == 0


def test_build_split_board_has_four_tilings(split_i_board):
    placements = enumerate_placements(split_i_board)
    nodes = build_nodes(split_i_board, placements)
    assert _count_paths(nodes) == 4
    # 最初は右下のセルを覆う縦 I しかない
    head = nodes.index(0)
    assert isinstance(head, ToItem) and head.count == 1


def test_every_path_tiles_the_board(o_hole_board):
    placements = enumerate_placements(o_hole_board)
    nodes = build_nodes(o_hole_board, placements)
    cells = set()
    for item in nodes.items:
        cells |= set(PieceBlocks(item.placed_piece).cells)
    assert cells == {(8, 0), (9, 0), (8, 1), (9, 1)}


def test_no_tiling_gives_abort_only():
    from conftest import clipped
    board = clipped("#######...", 1)
    nodes = build_nodes(board, enumerate_placements(board))
    assert nodes.indexes == [ABORT]
    assert nodes.items == []


def test_out_of_range_ids():
    nodes = Nodes([COMPLETE], [])
    assert nodes.head_index_id() == 0
    with pytest.raises(IndexError):
        nodes.index(1)
    with pytest.raises(IndexError):
        nodes.item(0)
    with pytest.raises(IndexError):
        nodes.items_of(ToItem(0, 1))
    assert Nodes().head_index_id() is None
