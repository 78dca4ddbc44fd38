# stackable.py – 置く順番が 1 つでも成立するか (到達判定つき部分集合探索)
"""
残りミノを N bit のマスクで持ち、1 個ずつ置いてはライン消去する。
同じ「残りマスク」なら盤面も同じになるので、1 回の呼び出しの中では
各マスクを 1 度だけ探索する。
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from config import get_logger
from core import BoardState, MoveRules, Spawn
from placements import PieceBlocks

log = get_logger("stackable")


def to_absolute_rows(current_rows: int, deleted_key: int) -> int:
    """消去済みの行を飛ばして、今の盤面の行マスクを元の盤面の行マスクに直す"""
    out = 0; r = 0; c = 0
    while current_rows >> c:
        if not (deleted_key >> r) & 1:
            if (current_rows >> c) & 1:
                out |= 1 << r
            c += 1
        r += 1
    return out


def find_one_stackable(board: BoardState, pieces: Sequence[PieceBlocks],
                       move_rules: MoveRules, spawn: Spawn) -> Optional[List[PieceBlocks]]:
    """
    pieces を全部置ける順番を 1 つ返す。無ければ None。
    board は切り取った盤面 (呼び出し側の盤面は変更しない)。
    """
    n = len(pieces)
    if n == 0:
        return []
    visited: Set[int] = set()
    order: List[PieceBlocks] = []

    def search(current: BoardState, remaining: int, deleted_key: int) -> bool:
        cleared = current.clear_lines()
        if cleared:
            deleted_key |= to_absolute_rows(cleared, deleted_key)

        rest = remaining
        while rest:
            bit = rest & -rest
            rest ^= bit
            piece = pieces[bit.bit_length() - 1]
            if piece.intercepted_rows & ~deleted_key:
                continue                        # 先に消えているべき行がまだ残っている
            cells = piece.cells_at(deleted_key)
            if not move_rules.can_reach(piece.shape, cells, current, spawn):
                continue
            next_remaining = remaining ^ bit
            if not next_remaining:
                order.append(piece)
                return True
            if next_remaining in visited:
                continue
            visited.add(next_remaining)
            if search(current.with_cells(cells), next_remaining, deleted_key):
                order.append(piece)
                return True
        return False

    if search(board.clone(), (1 << n) - 1, 0):
        order.reverse()
        return order
    return None


def find_all_stackable_orders(board: BoardState, pieces: Sequence[PieceBlocks],
                              move_rules: MoveRules, spawn: Spawn) -> FrozenSet[str]:
    """
    pieces を全部置ける順番をミノ種の文字列 ('TIO...') ですべて返す。
    残りマスクごとに「そこから先の順番の集合」をメモする。
    """
    n = len(pieces)
    if n == 0:
        return frozenset({""})
    memo: Dict[int, FrozenSet[str]] = {}

    def search(current: BoardState, remaining: int, deleted_key: int) -> FrozenSet[str]:
        hit = memo.get(remaining)
        if hit is not None:
            return hit
        cleared = current.clear_lines()
        if cleared:
            deleted_key |= to_absolute_rows(cleared, deleted_key)

        out: Set[str] = set()
        rest = remaining
        while rest:
            bit = rest & -rest
            rest ^= bit
            piece = pieces[bit.bit_length() - 1]
            if piece.intercepted_rows & ~deleted_key:
                continue
            cells = piece.cells_at(deleted_key)
            if not move_rules.can_reach(piece.shape, cells, current, spawn):
                continue
            next_remaining = remaining ^ bit
            if not next_remaining:
                out.add(piece.shape)
                continue
            for suffix in search(current.with_cells(cells), next_remaining, deleted_key):
                out.add(piece.shape + suffix)

        res = frozenset(out)
        memo[remaining] = res
        return res

    return search(board.clone(), (1 << n) - 1, 0)
