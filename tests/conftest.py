import random

import pytest

from core import BoardState, clear_move_cache
from placements import ClippedBoard

# 右端の縦 I は行 3 が消えてからでないと置けない
#   II / OO / JJ / LL の 4 通りで左の 2x4 を埋める
SPLIT_I_BOARD = """
    ....#####.
    ....######
    #########.
    #########.
    #########.
"""


def clipped(text: str, height: int) -> ClippedBoard:
    return ClippedBoard(BoardState.from_str(text), height)


@pytest.fixture
def split_i_board() -> ClippedBoard:
    return clipped(SPLIT_I_BOARD, 5)


@pytest.fixture
def i_slot_board() -> ClippedBoard:
    return clipped("######....", 1)


@pytest.fixture
def o_hole_board() -> ClippedBoard:
    return clipped("""
        ########..
        ########..
    """, 2)


@pytest.fixture(autouse=True)
def _fresh_move_cache():
    clear_move_cache()
    yield
    clear_move_cache()


def random_clipped_boards(seed: int, count: int):
    """右端の 3-4 列を空けて、4 の倍数だけ埋め戻した高さ 4 の盤面"""
    rng = random.Random(seed)
    boards = []
    for _ in range(count):
        width = rng.choice((3, 4))
        empties = [(x, y) for x in range(10 - width, 10) for y in range(4)]
        refill = rng.sample(empties, 4 * rng.choice((0, 1)))
        board = BoardState.filled_up_to(4)
        board.unset_cells(c for c in empties if c not in refill)
        boards.append(ClippedBoard(board, 4))
    return boards
