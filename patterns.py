# patterns.py – パターン (ツモ列の集合) の定義と展開
"""
パターン要素:

    One(T)                       -> T
    Fixed(TIO)                   -> TIO
    Wildcard()                   -> T, I, O, L, J, S, Z     (`*`)
    Permutation(counter, k)      -> counter から k 個取る順列 (`[TIO]p2`)
    Factorial(counter)           -> counter 全部の順列       (`*p7`)

Permutation / Factorial は重複を取り除かない。
パターン全体は要素ごとの列の直積を順に連結したもの。

>>> Pattern([One('T'), Wildcard(), Wildcard()]).len_shapes_vec()
49
>>> Pattern([Permutation(ShapeCounter.one_of_each(), 3)]).len_shapes_vec()
210
"""
from __future__ import annotations
from dataclasses import dataclass
from itertools import permutations, product
from typing import Callable, List, Sequence, Set, Tuple, Union

from orders import ShapeOrder, ShapeSequence
from shapes import SHAPES, ShapeCounter, check_shape


def calculate_permutation_size(length: int, pop: int) -> int:
    """length 個から pop 個取る順列の数 (falling factorial)"""
    assert pop <= length
    assert 0 < pop
    size = 1
    for it in range(length - pop + 1, length + 1):
        size *= it
    return size


@dataclass(frozen=True)
class One:
    shape: str

    def __post_init__(self): check_shape(self.shape)
    def to_shapes_vec(self) -> List[List[str]]: return [[self.shape]]
    def len_shapes_vec(self) -> int: return 1
    def dim_shapes(self) -> int: return 1


@dataclass(frozen=True)
class Fixed:
    shapes: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "shapes", tuple(check_shape(s) for s in self.shapes))
        if not self.shapes:
            raise ValueError("fixed element needs at least one shape")

    def to_shapes_vec(self) -> List[List[str]]: return [list(self.shapes)]
    def len_shapes_vec(self) -> int: return 1
    def dim_shapes(self) -> int: return len(self.shapes)


@dataclass(frozen=True)
class Wildcard:
    def to_shapes_vec(self) -> List[List[str]]: return [[s] for s in SHAPES]
    def len_shapes_vec(self) -> int: return len(SHAPES)
    def dim_shapes(self) -> int: return 1


@dataclass(frozen=True)
class Permutation:
    counter: ShapeCounter
    pop: int

    def to_shapes_vec(self) -> List[List[str]]:
        assert 0 < self.pop <= len(self.counter)
        return [list(p) for p in permutations(self.counter.to_shapes(), self.pop)]

    def len_shapes_vec(self) -> int:
        assert 0 < self.pop <= len(self.counter)
        return calculate_permutation_size(len(self.counter), self.pop)

    def dim_shapes(self) -> int:
        assert 0 < self.pop <= len(self.counter)
        return self.pop


@dataclass(frozen=True)
class Factorial:
    counter: ShapeCounter

    def to_shapes_vec(self) -> List[List[str]]:
        return [list(p) for p in permutations(self.counter.to_shapes())]

    def len_shapes_vec(self) -> int:
        return calculate_permutation_size(len(self.counter), len(self.counter))

    def dim_shapes(self) -> int:
        return len(self.counter)


PatternElement = Union[One, Fixed, Wildcard, Permutation, Factorial]


class PatternCreationError(ValueError):
    pass

class NoShapeSequences(PatternCreationError):
    def __init__(self): super().__init__("This does not have shape sequences.")

class ContainsInvalidPermutation(PatternCreationError):
    def __init__(self): super().__init__("The elements contains invalid permutation.")


class Pattern:
    """ツモ列の集合。要素が空、または不正な順列を含むと PatternCreationError。"""

    def __init__(self, elements: Sequence[PatternElement]):
        elements = list(elements)
        if not elements:
            raise NoShapeSequences()
        for element in elements:
            if isinstance(element, Permutation):
                n = len(element.counter)
                if n <= 0 or element.pop <= 0 or n < element.pop:
                    raise ContainsInvalidPermutation()
            elif isinstance(element, Factorial) and len(element.counter) <= 0:
                raise ContainsInvalidPermutation()
        self.elements: Tuple[PatternElement, ...] = tuple(elements)

    def __eq__(self, o): return isinstance(o, Pattern) and self.elements == o.elements
    def __hash__(self): return hash(self.elements)
    def __repr__(self): return f"Pattern({list(self.elements)!r})"

    def walk_shapes(self, visitor: Callable[[List[str]], None]):
        """全ツモ列を 1 本ずつ visitor に渡す (要素順の直積)"""
        all_shapes_vec = [element.to_shapes_vec() for element in self.elements]
        for parts in product(*all_shapes_vec):
            buffer: List[str] = []
            for shapes in parts:
                buffer.extend(shapes)
            visitor(buffer)

    def to_shapes_vec(self) -> List[List[str]]:
        out: List[List[str]] = []
        self.walk_shapes(out.append)
        return out

    def to_sequences(self) -> List[ShapeSequence]:
        return [ShapeSequence(tuple(it)) for it in self.to_shapes_vec()]

    def to_orders(self) -> List[ShapeOrder]:
        return [ShapeOrder(tuple(it)) for it in self.to_shapes_vec()]

    def to_shape_counters(self) -> Set[ShapeCounter]:
        """各ツモ列のミノ個数 (重複なし)"""
        out: Set[ShapeCounter] = set()
        self.walk_shapes(lambda shapes: out.add(ShapeCounter.from_shapes(shapes)))
        return out

    def len_shapes_vec(self) -> int:
        size = 1
        for element in self.elements:
            size *= element.len_shapes_vec()
        return size

    def dim_shapes(self) -> int:
        return sum(element.dim_shapes() for element in self.elements)
