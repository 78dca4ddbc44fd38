# aggregator.py – 依存グラフを DFS して PC できる組み合わせを数える
from __future__ import annotations
import multiprocessing as mp
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from config import CFG, get_logger
from core import BoardState, MoveRules, Spawn, default_spawn
from nodes import Complete, IndexId, Item, Nodes, ToItem, ToNextIndex
from placements import ClippedBoard, PieceBlocks, PlacedPiece
from shapes import ShapeCounter
from stackable import find_all_stackable_orders, find_one_stackable

log = get_logger("aggregator")


# ────────── COMPLETE で呼ぶ判定 ──────────
class PcAggregationChecker:
    """
    accepts: ミノ個数が許可リストのどれかに収まるか (None なら常に True)
    checks : 実際に置ける順番があるか
    """
    def __init__(self, shape_counters: Optional[Iterable[ShapeCounter]],
                 board: BoardState, move_rules: MoveRules, spawn: Spawn):
        self.shape_counters = list(shape_counters) if shape_counters is not None else None
        self.board = board
        self.move_rules = move_rules
        self.spawn = spawn

    def accepts(self, pieces: List[PieceBlocks]) -> bool:
        if self.shape_counters is None:
            return True
        counter = ShapeCounter.from_shapes(p.shape for p in pieces)
        return any(it.contains_all(counter) for it in self.shape_counters)

    def checks(self, pieces: List[PieceBlocks]) -> bool:
        return find_one_stackable(self.board, pieces, self.move_rules, self.spawn) is not None


class OrderCollectingChecker(PcAggregationChecker):
    """置ける順番 (ミノ種の文字列) を全部集める"""
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.orders: Set[str] = set()

    def checks(self, pieces: List[PieceBlocks]) -> bool:
        found = find_all_stackable_orders(self.board, pieces, self.move_rules, self.spawn)
        self.orders |= found
        return bool(found)


# ────────── 集計 ──────────
class Aggregator:
    def __init__(self, clipped_board: ClippedBoard, placed_pieces: Iterable[PlacedPiece],
                 nodes: Nodes, spawn: Optional[Spawn] = None,
                 move_rules: Optional[MoveRules] = None):
        self.clipped_board = clipped_board
        self.map_placed_piece_blocks: Dict[PlacedPiece, PieceBlocks] = {
            p: PieceBlocks(p) for p in placed_pieces}
        self.nodes = nodes
        self.spawn = spawn if spawn is not None else default_spawn(clipped_board.height)
        self.move_rules = move_rules if move_rules is not None else MoveRules.default()
        self.goal_board = clipped_board.goal_board()

    def _checker(self, shape_counters) -> PcAggregationChecker:
        return PcAggregationChecker(shape_counters, self.clipped_board.board,
                                    self.move_rules, self.spawn)

    def aggregate(self, workers: int = 1) -> int:
        """ミノ種の制限なしで数える"""
        return self.aggregate_with_shape_counters(None, workers)

    def aggregate_with_shape_counters(self, shape_counters: Optional[Iterable[ShapeCounter]],
                                      workers: int = 1) -> int:
        """ミノ個数が shape_counters のどれかに収まる組み合わせだけ数える"""
        if not self.nodes.indexes:
            return 0
        checker = self._checker(shape_counters)
        if workers > 1:
            return self._aggregate_parallel(checker, workers)
        return self.walk(checker)

    def aggregate_orders(self, shape_counters: Optional[Iterable[ShapeCounter]]) -> FrozenSet[str]:
        """許可された組み合わせについて、置ける順番をすべて集める"""
        if not self.nodes.indexes:
            return frozenset()
        checker = OrderCollectingChecker(shape_counters, self.clipped_board.board,
                                         self.move_rules, self.spawn)
        count = self.walk(checker)
        log.debug("collected %d orders from %d combinations", len(checker.orders), count)
        return frozenset(checker.orders)

    def walk(self, checker: PcAggregationChecker) -> int:
        return self._aggregate_recursively(self.nodes.head_index_id(), [], self._new_table(), checker)

    def _new_table(self) -> List[List[int]]:
        # blocked[depth][row]: row を割り込み行に持つ置き済みミノが使う行
        depth = self.clipped_board.spaces // 4 + 1
        return [[0] * self.clipped_board.height for _ in range(depth + 1)]

    def _aggregate_recursively(self, index_id: IndexId, placed: List[PieceBlocks],
                               table: List[List[int]], checker: PcAggregationChecker) -> int:
        node = self.nodes.index(index_id)
        kind = type(node)
        if kind is ToItem:
            return self._aggregate_items(self.nodes.items_of(node), placed, table, checker)
        if kind is ToNextIndex:
            return self._aggregate_recursively(node.index_id, placed, table, checker)
        if kind is Complete:
            if not checker.accepts(placed):
                return 0
            if not self._is_structurally_valid(placed):
                return 0
            return 1 if checker.checks(placed) else 0
        return 0                                         # Abort

    def _aggregate_items(self, items: List[Item], placed: List[PieceBlocks],
                         table: List[List[int]], checker: PcAggregationChecker) -> int:
        depth = len(placed)
        if len(table) <= depth + 1:
            table.append([0] * self.clipped_board.height)
        blocked, next_blocked = table[depth], table[depth + 1]

        success = 0
        for item in items:
            current = self.map_placed_piece_blocks[item.placed_piece]

            # current より後に置くことが確定しているミノが使う行
            filled_rows = 0
            for r in current.using_row_list:
                filled_rows |= blocked[r]

            if current.intercepted_rows & filled_rows:
                # current の前に消えているべき行を、current より後のミノが使っている
                continue

            next_blocked[:] = blocked
            for r in current.intercepted_row_list:
                next_blocked[r] |= current.using_rows

            placed.append(current)
            success += self._aggregate_recursively(item.next_index_id, placed, table, checker)
            placed.pop()

        return success

    def _is_structurally_valid(self, placed: List[PieceBlocks]) -> bool:
        """
        各ミノについて、その行が消えるのを待つミノ (= 後に置くミノ) を
        ゴール盤面から抜き、自分も抜いて割り込み行を詰めたとき、
        自分の位置で着地できるかを見る。
        """
        for current in placed:
            dependents = [p for p in placed
                          if p is not current and p.intercepted_rows & current.using_rows]
            if not dependents:
                continue
            board = self.goal_board.clone()
            for p in dependents:
                p.unset_all(board)
            current.unset_all(board)
            board.clear_lines_partially(current.intercepted_rows)
            if not board.is_landing(current.ground_cells()):
                return False
        return True

    # ─ 並列: 先頭の分岐をプロセスに分ける ─
    def _aggregate_parallel(self, checker: PcAggregationChecker, workers: int) -> int:
        head = self.nodes.index(self.nodes.head_index_id())
        while type(head) is ToNextIndex:
            head = self.nodes.index(head.index_id)
        if type(head) is not ToItem:
            return self._aggregate_recursively(self.nodes.head_index_id(), [], self._new_table(), checker)
        tasks = [(self, checker, item_id)
                 for item_id in range(head.first_item_id, head.first_item_id + head.count)]
        with mp.Pool(processes=workers) as pool:
            counts = pool.map(_aggregate_branch, tasks)
        log.debug("parallel aggregate: %d branches on %d workers", len(tasks), workers)
        return sum(counts)


def _aggregate_branch(args: Tuple[Aggregator, PcAggregationChecker, int]) -> int:
    aggregator, checker, item_id = args
    item = aggregator.nodes.item(item_id)
    return aggregator._aggregate_items([item], [], aggregator._new_table(), checker)


def aggregate(clipped_board: ClippedBoard, placed_pieces: Iterable[PlacedPiece], nodes: Nodes,
              shape_counters: Optional[Iterable[ShapeCounter]] = None,
              spawn: Optional[Spawn] = None, move_rules: Optional[MoveRules] = None,
              workers: Optional[int] = None) -> int:
    """Aggregator を作って 1 回だけ数える"""
    aggregator = Aggregator(clipped_board, placed_pieces, nodes, spawn, move_rules)
    return aggregator.aggregate_with_shape_counters(
        shape_counters, workers if workers is not None else CFG.WORKERS)
