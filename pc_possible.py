# pc_possible.py – パターンの各ツモ列で PC できるかを一括判定
from __future__ import annotations
import time
from dataclasses import dataclass, field, replace
from typing import FrozenSet, List, Optional, Set

import numpy as np

from aggregator import Aggregator
from config import CFG, get_logger
from core import BoardState, MoveRules, Spawn, default_spawn
from nodes import build_nodes
from orders import FuzzyShapeOrder, ShapeSequence
from patterns import Factorial, Pattern
from placements import ClippedBoard, enumerate_placements
from shapes import SHAPES, ShapeCounter

log = get_logger("pc_possible")


class PcPossibleExecutorCreationError(ValueError):
    pass

class UnexpectedBoardSpaces(PcPossibleExecutorCreationError):
    def __init__(self, spaces: int):
        super().__init__(f"board spaces must be a positive multiple of 4, got {spaces}")

class ShortPatternDimension(PcPossibleExecutorCreationError):
    def __init__(self, dim: int, needed: int):
        super().__init__(f"pattern has {dim} shapes per sequence, {needed} needed")


@dataclass
class PcPossibleResult:
    sequences: List[ShapeSequence]
    succeed: np.ndarray                  # bool, sequences と同じ並び

    def count_succeed(self) -> int:
        return int(np.count_nonzero(self.succeed))

    def count_failed(self) -> int:
        return len(self.sequences) - self.count_succeed()

    def count_accepted(self) -> int:
        return len(self.sequences)

    def succeed_rate(self) -> float:
        return float(self.succeed.mean()) if len(self.sequences) else 0.0

    def is_succeed(self, sequence: ShapeSequence) -> bool:
        return bool(self.succeed[self.sequences.index(sequence)])


class PcPossibleBulkExecutor:
    """
    1. 切り取り範囲を埋める組み合わせを全部グラフにする
    2. パターンに出てくるミノで作れる組み合わせだけ、置ける順番を集める
    3. ツモ列ごとに、ホールドで実現できる順番のどれかが集合に入っていれば成功
    UNKNOWN を含む順番は、7 種どれが来ても成功するときだけ数える。
    """

    def __init__(self, move_rules: MoveRules, clipped_board: ClippedBoard, pattern: Pattern,
                 allows_hold: bool, spawn: Spawn):
        self.move_rules = move_rules
        self.clipped_board = clipped_board
        self.pattern = pattern
        self.allows_hold = allows_hold
        self.spawn = spawn
        self.pieces = clipped_board.spaces // 4

    @classmethod
    def try_new(cls, move_rules: MoveRules, clipped_board: ClippedBoard, pattern: Pattern,
                allows_hold: bool, spawn: Optional[Spawn] = None) -> "PcPossibleBulkExecutor":
        spaces = clipped_board.spaces
        if spaces <= 0 or spaces % 4 != 0:
            raise UnexpectedBoardSpaces(spaces)
        pieces = spaces // 4
        dim = pattern.dim_shapes()
        if dim < pieces:
            raise ShortPatternDimension(dim, pieces)
        return cls(move_rules, clipped_board, pattern, allows_hold,
                   spawn if spawn is not None else default_spawn(clipped_board.height))

    def shape_counters(self) -> Set[ShapeCounter]:
        """集計で許すミノ個数 (パターンの各ツモ列の多重集合)"""
        counters = self.pattern.to_shape_counters()
        if self.allows_hold and self.pattern.dim_shapes() <= self.pieces:
            # 列の外のミノ (UNKNOWN) を 1 つ使う組み合わせも要る
            extra = [ShapeCounter.from_shapes(s) for s in SHAPES]
            counters = {c + e for c in counters for e in extra}
        return counters

    def collect_orders(self) -> FrozenSet[str]:
        placements = enumerate_placements(self.clipped_board)
        nodes = build_nodes(self.clipped_board, placements)
        aggregator = Aggregator(self.clipped_board, placements, nodes, self.spawn, self.move_rules)
        return aggregator.aggregate_orders(self.shape_counters())

    def execute(self) -> PcPossibleResult:
        started = time.time()
        sequences = self.pattern.to_sequences()
        orders = self.collect_orders()

        accepted: dict = {}
        def accepts(order: FuzzyShapeOrder) -> bool:
            hit = accepted.get(order)
            if hit is None:
                if order.has_unknown():
                    hit = all("".join(o.shapes) in orders for o in order.expand_as_wildcard())
                else:
                    hit = "".join(order.shapes) in orders
                accepted[order] = hit
            return hit

        succeed = np.zeros(len(sequences), dtype=bool)
        for i, seq in enumerate(sequences):
            succeed[i] = any(accepts(o) for o in seq.infer_orders(self.pieces, self.allows_hold))

        result = PcPossibleResult(sequences, succeed)
        log.info("pc possible: %d / %d sequences (%d orders, %.1fs)",
                 result.count_succeed(), len(sequences), len(orders), time.time() - started)
        return result


@dataclass
class PcPossibleBulkExecutorBinder:
    """
    PcPossibleBulkExecutor の設定をまとめて持つ。
    既定値 (default):
      + move rules: 引数
      + board: 空, 高さ 4 ライン
      + pattern: 全ミノの順列 (*p7)
      + allows hold: yes
    """
    move_rules: MoveRules
    clipped_board: ClippedBoard = field(
        default_factory=lambda: ClippedBoard(BoardState.empty(), CFG.HEIGHT))
    pattern: Pattern = field(
        default_factory=lambda: Pattern([Factorial(ShapeCounter.one_of_each())]))
    allows_hold: bool = CFG.ALLOWS_HOLD
    spawn: Optional[Spawn] = None

    @classmethod
    def default(cls, move_rules: MoveRules) -> "PcPossibleBulkExecutorBinder":
        return cls(move_rules)

    @classmethod
    def srs(cls, move_type: str = "softdrop") -> "PcPossibleBulkExecutorBinder":
        return cls.default(MoveRules.srs(move_type))

    def clone(self) -> "PcPossibleBulkExecutorBinder":
        return replace(self)

    def try_bind(self) -> PcPossibleBulkExecutor:
        return PcPossibleBulkExecutor.try_new(
            self.move_rules, self.clipped_board, self.pattern, self.allows_hold, self.spawn)
