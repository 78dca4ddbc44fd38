# orders.py – ミノ列 (sequence) / 順序 (order) / ファジー順序
"""
sequence はツモ順そのもの、order はホールドを経て実際に置く順。
ホールドありのとき、列の末尾より先 (まだ見えていないミノ) は UNKNOWN になる。
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set, Tuple

from shapes import SHAPES, UNKNOWN, ShapeCounter, check_shape


@dataclass(frozen=True)
class ShapeSequence:
    shapes: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "shapes", tuple(check_shape(s) for s in self.shapes))

    def __len__(self): return len(self.shapes)
    def __str__(self): return "".join(self.shapes)

    def to_counter(self) -> ShapeCounter:
        return ShapeCounter.from_shapes(self.shapes)

    def infer_orders(self, length: int, allows_hold: bool) -> Set["FuzzyShapeOrder"]:
        """
        この列から length 個置くときに実現できる順序すべて。
        ホールド枠は 1 つ。列の外のミノは UNKNOWN。
        """
        shapes = self.shapes
        def at(i: int) -> str: return shapes[i] if i < len(shapes) else UNKNOWN

        if not allows_hold:
            return {FuzzyShapeOrder(tuple(at(i) for i in range(length)))}

        out: Set[FuzzyShapeOrder] = set()
        def walk(i: int, hold: Optional[str], buf: Tuple[str, ...]):
            if len(buf) == length:
                out.add(FuzzyShapeOrder(buf)); return
            current = at(i)
            walk(i + 1, hold, buf + (current,))                # そのまま置く
            if hold is None:
                walk(i + 2, current, buf + (at(i + 1),))       # ホールドして次を置く
            else:
                walk(i + 1, current, buf + (hold,))            # ホールドと入れ替え
        walk(0, None, ())
        return out


@dataclass(frozen=True)
class ShapeOrder:
    shapes: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "shapes", tuple(check_shape(s) for s in self.shapes))

    def __len__(self): return len(self.shapes)
    def __str__(self): return "".join(self.shapes)


@dataclass(frozen=True)
class FuzzyShapeOrder:
    """
    既知のミノと UNKNOWN が混ざった順序。
    UNKNOWN は 7 種のどれにもなり得る。
    """
    shapes: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "shapes", tuple(
            s if s == UNKNOWN else check_shape(s) for s in self.shapes))

    def __len__(self): return len(self.shapes)
    def __str__(self): return "".join(self.shapes)

    def has_unknown(self) -> bool:
        return UNKNOWN in self.shapes

    def walk_as_wildcard(self, visitor: Callable[[Tuple[str, ...]], None]):
        """UNKNOWN を 7 種それぞれに置き換えた順序を 1 つずつ visitor に渡す (左から順に展開)"""
        shapes = self.shapes
        assert shapes, "fuzzy order is empty"
        buffer: List[str] = ['T'] * len(shapes)

        def build(index: int):
            if index >= len(shapes):
                visitor(tuple(buffer)); return
            s = shapes[index]
            if s == UNKNOWN:
                for shape in SHAPES:
                    buffer[index] = shape
                    build(index + 1)
            else:
                buffer[index] = s
                build(index + 1)

        build(0)

    def expand_as_wildcard(self) -> List[ShapeOrder]:
        out: List[ShapeOrder] = []
        self.walk_as_wildcard(lambda shapes: out.append(ShapeOrder(shapes)))
        return out


def fuzzy(shapes: Sequence[str]) -> FuzzyShapeOrder:
    """'T*O' のような文字列からファジー順序を作る"""
    return FuzzyShapeOrder(tuple(shapes))
