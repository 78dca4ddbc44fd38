# placements.py – 切り取った盤面 (ClippedBoard) と、そこに置けるミノ配置の列挙
"""
配置 (PlacedPiece) は「向き・回転中心の列・使う行」で表す。
行は連続しなくてよい: 間の行 (intercepted_rows) は、そのミノを置く前に
消えている必要がある。

    rows=(0, 1, 3) の縦 L  ->  using_rows = {0,1,3}, intercepted_rows = {2}
"""
from __future__ import annotations
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, List, Tuple

from config import CFG, get_logger
from core import (PIECE_SHAPES, UNIQUE_ROTATIONS, W, BoardState, Cell,
                  lines_filled_up_to, lines_rows)
from shapes import SHAPES

log = get_logger("placements")


class ClippedBoardCreationError(ValueError):
    pass


@dataclass(frozen=True)
class ClippedBoard:
    """高さ height 行に切り取った盤面。ゴールはこの範囲を全部埋めて消すこと。"""
    board: BoardState
    height: int

    def __post_init__(self):
        if not 0 < self.height <= CFG.MAX_HEIGHT:
            raise ClippedBoardCreationError(
                f"height must be in 1..{CFG.MAX_HEIGHT}, got {self.height}")
        if self.board.height() > self.height:
            raise ClippedBoardCreationError(
                f"board has blocks above the clipped height {self.height}")

    @property
    def spaces(self) -> int:
        return self.height * W - self.board.count_blocks()

    def goal_board(self) -> BoardState:
        return BoardState.filled_up_to(self.height)


@dataclass(frozen=True)
class PlacedPiece:
    shape: str
    rot: int
    x: int                       # 回転中心の列
    rows: Tuple[int, ...]        # 向きの行オフセット (下から) ごとの実際の行, 昇順

    def __str__(self):
        return f"{self.shape}{self.rot}@{self.x}{list(self.rows)}"


class PieceBlocks:
    """PlacedPiece から導いた値 (セル・使用行・割り込み行) をまとめて持つ"""
    __slots__ = ("placed_piece", "shape", "cells", "using_rows", "intercepted_rows",
                 "using_row_list", "intercepted_row_list", "_offsets")

    def __init__(self, placed_piece: PlacedPiece):
        p = placed_piece
        shape = PIECE_SHAPES[p.shape][p.rot]
        min_dy = min(dy for _, dy in shape)
        span = max(dy for _, dy in shape) - min_dy + 1
        assert len(p.rows) == span, f"{p}: expected {span} rows"
        assert list(p.rows) == sorted(set(p.rows)), f"{p}: rows must be ascending"

        self.placed_piece = p
        self.shape = p.shape
        # (列, 向き内の行番号 0..span-1)
        self._offsets = tuple((p.x + dx, dy - min_dy) for dx, dy in shape)
        self.cells: Tuple[Cell, ...] = tuple((x, p.rows[i]) for x, i in self._offsets)
        self.using_rows = 0
        for r in p.rows: self.using_rows |= 1 << r
        between = lines_filled_up_to(p.rows[-1]) & ~lines_filled_up_to(p.rows[0])
        self.intercepted_rows = between & ~self.using_rows
        self.using_row_list = list(p.rows)
        self.intercepted_row_list = lines_rows(self.intercepted_rows)

    @property
    def deleted_rows(self) -> int:
        return self.intercepted_rows

    def __repr__(self):
        return f"PieceBlocks({self.placed_piece})"

    def cells_at(self, deleted_key: int) -> Tuple[Cell, ...]:
        """deleted_key の行が消えた後の盤面上でのセル位置 (下にある消えた行の数だけ下げる)"""
        rows = self.placed_piece.rows
        shifted = [r - (deleted_key & ((1 << r) - 1)).bit_count() for r in rows]
        return tuple((x, shifted[i]) for x, i in self._offsets)

    def ground_cells(self) -> Tuple[Cell, ...]:
        """割り込み行だけを詰めたときのセル位置 (一番下の行は動かない)"""
        bottom = self.placed_piece.rows[0]
        return tuple((x, bottom + i) for x, i in self._offsets)

    def set_all(self, board: BoardState):
        board.set_cells(self.cells)

    def unset_all(self, board: BoardState):
        board.unset_cells(self.cells)


def enumerate_placements(clipped_board: ClippedBoard) -> List[PlacedPiece]:
    """
    切り取り範囲に収まり、既存ブロックと重ならない配置をすべて返す。
    行の選び方は height 行から (向きの行数) 個を昇順に選ぶ全組み合わせ。
    """
    board, height = clipped_board.board, clipped_board.height
    out: List[PlacedPiece] = []
    seen: set = set()
    for kind in SHAPES:
        for rot in UNIQUE_ROTATIONS[kind]:
            shape = PIECE_SHAPES[kind][rot]
            min_dx = min(dx for dx, _ in shape); max_dx = max(dx for dx, _ in shape)
            span = max(dy for _, dy in shape) - min(dy for _, dy in shape) + 1
            for x in range(-min_dx, W - max_dx):
                for rows in combinations(range(height), span):
                    placed = PlacedPiece(kind, rot, x, rows)
                    cells = PieceBlocks(placed).cells
                    if not board.is_empty_at(cells):
                        continue
                    key = frozenset(cells)
                    if key in seen:
                        continue
                    seen.add(key); out.append(placed)
    log.debug("enumerated %d placements (height=%d)", len(out), height)
    return out


def index_by_cell(placed_pieces: List[PlacedPiece]) -> Dict[Cell, List[PlacedPiece]]:
    by_cell: Dict[Cell, List[PlacedPiece]] = {}
    for p in placed_pieces:
        for cell in PieceBlocks(p).cells:
            by_cell.setdefault(cell, []).append(p)
    return by_cell
