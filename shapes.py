# shapes.py – ミノ種別とミノ個数カウンタ (多重集合)
from __future__ import annotations
from typing import Iterable, List, Optional, Tuple

# 列挙順は常にこの順 (ワイルドカード展開・順列生成もこれに従う)
SHAPES: Tuple[str, ...] = ('T', 'I', 'O', 'L', 'J', 'S', 'Z')
UNKNOWN = '*'                                     # ファジー順序での「不明」
_SHAPE_INDEX = {s: i for i, s in enumerate(SHAPES)}


def check_shape(shape: str) -> str:
    if shape not in _SHAPE_INDEX:
        raise ValueError(f"unknown shape: {shape!r}")
    return shape


class ShapeCounter:
    """
    7 種それぞれの個数。不変・ハッシュ可能。
    contains_all(other) は全種で self >= other のとき True。
    """
    __slots__ = ("counts", "_hash")

    def __init__(self, counts: Optional[Iterable[int]] = None):
        self.counts = tuple(counts) if counts is not None else (0,) * len(SHAPES)
        assert len(self.counts) == len(SHAPES) and all(c >= 0 for c in self.counts)
        self._hash = hash(self.counts)

    @staticmethod
    def empty() -> "ShapeCounter":
        return ShapeCounter()

    @staticmethod
    def one_of_each() -> "ShapeCounter":
        return ShapeCounter((1,) * len(SHAPES))

    @staticmethod
    def from_shapes(shapes: Iterable[str]) -> "ShapeCounter":
        counts = [0] * len(SHAPES)
        for s in shapes:
            counts[_SHAPE_INDEX[check_shape(s)]] += 1
        return ShapeCounter(counts)

    def __len__(self): return sum(self.counts)
    def __getitem__(self, shape: str) -> int: return self.counts[_SHAPE_INDEX[shape]]
    def __hash__(self): return self._hash
    def __eq__(self, o): return isinstance(o, ShapeCounter) and self.counts == o.counts

    def __add__(self, other: "ShapeCounter") -> "ShapeCounter":
        return ShapeCounter(a + b for a, b in zip(self.counts, other.counts))

    def __repr__(self):
        body = "".join(s * c for s, c in self.to_pairs())
        return f"ShapeCounter({body!r})"

    def contains_all(self, other: "ShapeCounter") -> bool:
        return all(a >= b for a, b in zip(self.counts, other.counts))

    def to_pairs(self) -> List[Tuple[str, int]]:
        """個数 1 以上の (shape, count)。SHAPES 順"""
        return [(s, c) for s, c in zip(SHAPES, self.counts) if c > 0]

    def to_shapes(self) -> List[str]:
        return [s for s, c in self.to_pairs() for _ in range(c)]
