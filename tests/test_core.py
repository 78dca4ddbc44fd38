import pytest

from core import (UNIQUE_ROTATIONS, BoardParseError, BoardState, MoveRules, clear_move_cache,
                  default_spawn, lines_filled_up_to, lines_rows)


def test_from_str_reads_top_row_first():
    board = BoardState.from_str("""
        #.........
        ##########
    """)
    assert board.cell(0, 1)
    assert not board.cell(1, 1)
    assert board.filled_rows() == 0b01
    assert board.count_blocks() == 11
    assert board.height() == 2


def test_from_str_rejects_bad_rows():
    with pytest.raises(BoardParseError):
        BoardState.from_str("#####")
    with pytest.raises(BoardParseError):
        BoardState.from_str("####?.....")


def test_str_round_trip():
    text = "X.........\n##########"
    assert str(BoardState.from_str(text)) == "#.........\n##########"


def test_clear_lines_returns_cleared_mask():
    board = BoardState.from_str("""
        ##########
        #.........
        ##########
    """)
    assert board.clear_lines() == 0b101
    assert board == BoardState.from_str("#.........")
    assert board.clear_lines() == 0


def test_clear_lines_partially_removes_rows_from_the_top():
    board = BoardState.from_str("""
        ...#......
        ..#.......
        .#........
        #.........
    """)
    board.clear_lines_partially(0b0110)
    assert board == BoardState.from_str("""
        ...#......
        #.........
    """)


def test_filled_up_to_and_row_helpers():
    assert lines_filled_up_to(3) == 0b111
    assert lines_rows(0b10110) == [1, 2, 4]
    assert BoardState.filled_up_to(4).filled_rows() == 0b1111


def test_with_cells_keeps_original():
    board = BoardState.empty()
    other = board.with_cells([(0, 0), (9, 3)])
    assert board.count_blocks() == 0
    assert other.cell(9, 3)
    assert hash(other) == hash(BoardState.empty().with_cells([(9, 3), (0, 0)]))


def test_is_landing():
    board = BoardState.from_str("#.........")
    assert board.is_landing([(0, 1)])
    assert board.is_landing([(5, 0)])
    assert not board.is_landing([(1, 1), (2, 1)])


def test_unique_rotations():
    assert UNIQUE_ROTATIONS['O'] == (0,)
    assert UNIQUE_ROTATIONS['I'] == (0, 1)
    assert UNIQUE_ROTATIONS['S'] == (0, 1)
    assert UNIQUE_ROTATIONS['Z'] == (0, 1)
    for kind in "TLJ":
        assert UNIQUE_ROTATIONS[kind] == (0, 1, 2, 3)


def test_move_rules_validation():
    with pytest.raises(ValueError):
        MoveRules("ars", "softdrop")
    with pytest.raises(ValueError):
        MoveRules("srs", "20g")
    assert MoveRules.srs() == MoveRules("srs", "softdrop")


def test_landings_on_empty_board():
    rules = MoveRules.srs("harddrop")
    spawn = default_spawn(4)
    assert rules.can_reach('I', [(3, 0), (4, 0), (5, 0), (6, 0)], BoardState.empty(), spawn)
    assert rules.can_reach('I', [(0, 0), (0, 1), (0, 2), (0, 3)], BoardState.empty(), spawn)
    # 浮いている位置は着地ではない
    assert not rules.can_reach('I', [(3, 1), (4, 1), (5, 1), (6, 1)], BoardState.empty(), spawn)


TUCK_BOARD = """
    ######..##
    ######....
    ######....
"""


@pytest.mark.parametrize("move_type, expected", [("softdrop", True), ("harddrop", False)])
def test_tuck_needs_softdrop(move_type, expected):
    clear_move_cache()
    board = BoardState.from_str(TUCK_BOARD)
    cells = [(8, 0), (9, 0), (8, 1), (9, 1)]
    assert MoveRules.srs(move_type).can_reach('O', cells, board, default_spawn(3)) is expected


def test_blocked_spawn_has_no_landings():
    board = BoardState.filled_up_to(8)
    assert MoveRules.srs().landings(board, 'T', (4, 2)) == frozenset()


def test_merge():
    board = BoardState.from_str("#.........")
    board.merge(BoardState.from_str(".#........\n.........#"))
    assert board == BoardState.from_str(".#........\n#........#")
    assert hash(board) == hash(BoardState.from_str(".#........\n#........#"))


# 右の壁と (3,2) の屋根で、縦向き T は横 (0,0) 回転でも落下でも入れない
#   上から左回りに入る 5 番目のキック (+1,-2) だけが通る
T_SPIN_TRIPLE_BOARD = """
    ....#.....
    ..........
    ...#.#....
    .....#....
    .....#....
"""
T_SPIN_TRIPLE_CELLS = [(4, 0), (4, 1), (3, 1), (4, 2)]


@pytest.mark.parametrize("rotation_system, expected", [("srs", True), ("nokick", False)])
def test_kick_only_slot(rotation_system, expected):
    board = BoardState.from_str(T_SPIN_TRIPLE_BOARD)
    rules = MoveRules(rotation_system, "softdrop")
    assert rules.can_reach('T', T_SPIN_TRIPLE_CELLS, board, default_spawn(5)) is expected


def test_nokick_still_rotates_in_open_field():
    rules = MoveRules("nokick", "harddrop")
    assert rules.can_reach('I', [(0, 0), (0, 1), (0, 2), (0, 3)], BoardState.empty(), default_spawn(4))


def test_landings_are_repeatable():
    board = BoardState.from_str(T_SPIN_TRIPLE_BOARD)
    rules = MoveRules.srs()
    first = rules.landings(board, 'T', default_spawn(5))
    assert rules.landings(board, 'T', default_spawn(5)) == first
    clear_move_cache()
    assert rules.landings(board.clone(), 'T', default_spawn(5)) == first
