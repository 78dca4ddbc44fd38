# nodes.py – 配置の依存グラフ (index ノード + item) とその構築
"""
index ノード:
    ToItem(first_item_id, count)  items[first .. first+count) のどれかを選ぶ
    ToNextIndex(index_id)         選択なしで次へ
    COMPLETE                      全部選び終わった (PC 候補)
    ABORT                         行き止まり

id はどちらも 0 始まりの連番。グラフは一度作ったら読むだけ。
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from config import get_logger
from core import BoardState, Cell
from placements import ClippedBoard, PieceBlocks, PlacedPiece, index_by_cell

log = get_logger("nodes")

IndexId = int
ItemId  = int


@dataclass(frozen=True)
class ToItem:
    first_item_id: ItemId
    count: int


@dataclass(frozen=True)
class ToNextIndex:
    index_id: IndexId


@dataclass(frozen=True)
class Complete:
    pass


@dataclass(frozen=True)
class Abort:
    pass


COMPLETE = Complete()
ABORT    = Abort()

IndexNode = Union[ToItem, ToNextIndex, Complete, Abort]


@dataclass(frozen=True)
class Item:
    placed_piece: PlacedPiece
    next_index_id: IndexId


@dataclass
class Nodes:
    indexes: List[IndexNode] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)

    def head_index_id(self) -> Optional[IndexId]:
        return 0 if self.indexes else None

    def index(self, index_id: IndexId) -> IndexNode:
        if not 0 <= index_id < len(self.indexes):
            raise IndexError(f"index id out of range: {index_id}")
        return self.indexes[index_id]

    def item(self, item_id: ItemId) -> Item:
        if not 0 <= item_id < len(self.items):
            raise IndexError(f"item id out of range: {item_id}")
        return self.items[item_id]

    def items_of(self, node: ToItem) -> List[Item]:
        end = node.first_item_id + node.count
        if node.first_item_id < 0 or end > len(self.items):
            raise IndexError(f"item range out of bounds: {node}")
        return self.items[node.first_item_id:end]


def _first_empty(board: BoardState, height: int) -> Optional[Cell]:
    """下の行から、左から順に最初の空きセル"""
    for y in range(height):
        for x, col in enumerate(board.cols):
            if not (col >> y) & 1:
                return (x, y)
    return None


def build_nodes(clipped_board: ClippedBoard, placed_pieces: List[PlacedPiece]) -> Nodes:
    """
    切り取り範囲を placed_pieces でぴったり埋める組み合わせをグラフにする。
    各ノードでは「一番下・一番左の空きセル」を覆う配置で分岐するので、
    1 つの組み合わせは head から COMPLETE までのちょうど 1 本の経路になる。
    同じ埋まり方の盤面はノードを共有する。先が無い分岐は item にしない。
    """
    height = clipped_board.height
    by_cell = index_by_cell(placed_pieces)
    blocks: Dict[PlacedPiece, Tuple[Cell, ...]] = {p: PieceBlocks(p).cells for p in placed_pieces}
    nodes = Nodes()
    memo: Dict[Tuple[int, ...], IndexId] = {}

    def build(board: BoardState) -> IndexId:
        hit = memo.get(board.cols)
        if hit is not None:
            return hit
        index_id = len(nodes.indexes)
        nodes.indexes.append(ABORT)
        memo[board.cols] = index_id

        cell = _first_empty(board, height)
        if cell is None:
            nodes.indexes[index_id] = COMPLETE
            return index_id

        children: List[Item] = []
        for p in by_cell.get(cell, ()):
            cells = blocks[p]
            if not board.is_empty_at(cells):
                continue
            next_id = build(board.with_cells(cells))
            if nodes.indexes[next_id] is not ABORT:
                children.append(Item(p, next_id))

        if children:
            nodes.indexes[index_id] = ToItem(len(nodes.items), len(children))
            nodes.items.extend(children)
        return index_id

    build(clipped_board.board.clone())
    log.debug("built nodes: %d indexes, %d items", len(nodes.indexes), len(nodes.items))
    return nodes
