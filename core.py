# core.py – PC 判定用 共有ロジック (Column Bitboard + SRS 到達判定)
from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from operator import and_
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from config import CFG, get_logger

log = get_logger("core")

# ────────── 定数 ──────────
MATRIX_W = 10
W        = MATRIX_W                                # エイリアス

Cell  = Tuple[int, int]
Spawn = Tuple[int, int]                            # 回転中心 (x, y), 向きは常に 0

# 回転中心からの相対座標 (y は上向き)。I は SRS の 4x4 枠に合わせる
PIECE_SHAPES: Dict[str, List[List[Cell]]] = {
    'I': [[(-1,0),(0,0),(1,0),(2,0)], [(1,1),(1,0),(1,-1),(1,-2)],
          [(-1,-1),(0,-1),(1,-1),(2,-1)], [(0,1),(0,0),(0,-1),(0,-2)]],
    'O': [[(0,0),(1,0),(0,1),(1,1)]]*4,
    'T': [[(-1,0),(0,0),(1,0),(0,1)], [(0,-1),(0,0),(1,0),(0,1)],
          [(-1,0),(0,0),(1,0),(0,-1)],[(0,-1),(0,0),(-1,0),(0,1)]],
    'S': [[(-1,0),(0,0),(0,1),(1,1)], [(0,1),(0,0),(1,0),(1,-1)],
          [(1,0),(0,0),(0,-1),(-1,-1)],[(0,-1),(0,0),(-1,0),(-1,1)]],
    'Z': [[(0,0),(1,0),(-1,1),(0,1)],  [(0,0),(0,-1),(1,1),(1,0)],
          [(0,0),(-1,0),(1,-1),(0,-1)],[(0,0),(0,1),(-1,-1),(-1,0)]],
    'J': [[(-1,0),(0,0),(1,0),(-1,1)], [(0,1),(0,0),(0,-1),(1,1)],
          [(1,0),(0,0),(-1,0),(1,-1)], [(0,-1),(0,0),(0,1),(-1,-1)]],
    'L': [[(-1,0),(0,0),(1,0),(1,1)],  [(0,1),(0,0),(0,-1),(1,-1)],
          [(1,0),(0,0),(-1,0),(-1,-1)],[(0,-1),(0,0),(0,1),(-1,1)]],
}

JLSTZ_KICKS = {(0,1):[(0,0),(-1,0),(-1,1),(0,-2),(-1,-2)],
               (1,0):[(0,0),(1,0),(1,-1),(0,2),(1,2)],
               (1,2):[(0,0),(1,0),(1,-1),(0,2),(1,2)],
               (2,1):[(0,0),(-1,0),(-1,1),(0,-2),(-1,-2)],
               (2,3):[(0,0),(1,0),(1,1),(0,-2),(1,-2)],
               (3,2):[(0,0),(-1,0),(-1,-1),(0,2),(-1,2)],
               (3,0):[(0,0),(-1,0),(-1,-1),(0,2),(-1,2)],
               (0,3):[(0,0),(1,0),(1,1),(0,-2),(1,-2)]}
I_KICKS = {(0,1):[(0,0),(-2,0),(1,0),(-2,-1),(1,2)],
           (1,0):[(0,0),(2,0),(-1,0),(2,1),(-1,-2)],
           (1,2):[(0,0),(-1,0),(2,0),(-1,2),(2,-1)],
           (2,1):[(0,0),(1,0),(-2,0),(1,-2),(-2,1)],
           (2,3):[(0,0),(2,0),(-1,0),(2,1),(-1,-2)],
           (3,2):[(0,0),(-2,0),(1,0),(-2,-1),(1,2)],
           (3,0):[(0,0),(1,0),(-2,0),(1,-2),(-2,1)],
           (0,3):[(0,0),(-1,0),(2,0),(-1,2),(2,-1)]}


def _unique_rotations(kind: str) -> Tuple[int, ...]:
    """形が同じ向き (I/S/Z の 0と2 など) を除いた回転番号"""
    seen: set = set(); out: List[int] = []
    for rot, shape in enumerate(PIECE_SHAPES[kind]):
        mx = min(dx for dx, _ in shape); my = min(dy for _, dy in shape)
        norm = frozenset((dx - mx, dy - my) for dx, dy in shape)
        if norm not in seen:
            seen.add(norm); out.append(rot)
    return tuple(out)

UNIQUE_ROTATIONS: Dict[str, Tuple[int, ...]] = {k: _unique_rotations(k) for k in PIECE_SHAPES}


def shape_cells(kind: str, rot: int, x: int, y: int) -> Tuple[Cell, ...]:
    return tuple((x + dx, y + dy) for dx, dy in PIECE_SHAPES[kind][rot])


# ────────── 行ビットマスク (Lines) ──────────
def lines_filled_up_to(k: int) -> int:
    """行 0..k-1 が立ったマスク"""
    return (1 << k) - 1

def lines_rows(mask: int) -> List[int]:
    """マスクに立っている行番号 (昇順)"""
    rows = []
    while mask:
        low = mask & -mask
        rows.append(low.bit_length() - 1)
        mask ^= low
    return rows

def _remove_rows(col: int, rows_desc: Iterable[int]) -> int:
    """列ビット列から指定行を抜いて上を詰める (上の行から抜くこと)"""
    for r in rows_desc:
        lower = col & ((1 << r) - 1)
        upper = col >> (r + 1)
        col = lower | (upper << r)
    return col


# ────────── Column Bitboard Board State ──────────
class BoardState:
    """列ごとの行ビットで保持。高さは無制限 (上は空)。"""
    __slots__ = ("cols", "_hash")

    def __init__(self, cols: Optional[Tuple[int, ...]] = None):
        self.cols = tuple(cols) if cols is not None else tuple(0 for _ in range(W))
        self._hash = hash(self.cols)

    # ─ clone / hash ─
    def clone(self) -> "BoardState": return BoardState(self.cols)
    def __hash__(self): return self._hash
    def __eq__(self, o): return isinstance(o, BoardState) and self.cols == o.cols
    def __repr__(self): return f"BoardState({self.cols!r})"

    # ─ cell helpers ─
    def cell(self, x: int, y: int) -> bool: return ((self.cols[x] >> y) & 1) != 0

    def set_cells(self, cells: Iterable[Cell]):
        cols = list(self.cols)
        for x, y in cells: cols[x] |= 1 << y
        self.cols = tuple(cols); self._hash = hash(self.cols)

    def unset_cells(self, cells: Iterable[Cell]):
        cols = list(self.cols)
        for x, y in cells: cols[x] &= ~(1 << y)
        self.cols = tuple(cols); self._hash = hash(self.cols)

    def merge(self, other: "BoardState"):
        self.cols = tuple(a | b for a, b in zip(self.cols, other.cols)); self._hash = hash(self.cols)

    def with_cells(self, cells: Iterable[Cell]) -> "BoardState":
        new = self.clone(); new.set_cells(cells); return new

    def is_empty_at(self, cells: Iterable[Cell]) -> bool:
        return not any((self.cols[x] >> y) & 1 for x, y in cells)

    def count_blocks(self) -> int: return sum(c.bit_count() for c in self.cols)

    def height(self) -> int: return max(c.bit_length() for c in self.cols)

    # ─ line clear ─
    def filled_rows(self) -> int:
        """揃っている行のマスク (全列の AND)"""
        return reduce(and_, self.cols)

    def clear_lines(self) -> int:
        """揃った行を消して上を詰める。消した行 (消去前の行番号) のマスクを返す"""
        full = self.filled_rows()
        if full:
            self.clear_lines_partially(full)
        return full

    def clear_lines_partially(self, rows: int):
        """揃っているかに関係なく rows の行を抜く"""
        if not rows: return
        desc = lines_rows(rows)[::-1]
        self.cols = tuple(_remove_rows(c, desc) for c in self.cols)
        self._hash = hash(self.cols)

    # ─ 判定 ─
    def is_landing(self, cells: Iterable[Cell]) -> bool:
        """どれか 1 マスが床か既存ブロックに乗っていれば True"""
        return any(y == 0 or (self.cols[x] >> (y - 1)) & 1 for x, y in cells)

    def __str__(self):
        h = max(1, self.height())
        return "\n".join(
            "".join('#' if self.cell(x, y) else '.' for x in range(W))
            for y in range(h - 1, -1, -1))

    # ─ 生成 ─
    @staticmethod
    def empty() -> "BoardState":
        return BoardState()

    @staticmethod
    def filled_up_to(height: int) -> "BoardState":
        full = lines_filled_up_to(height)
        return BoardState(tuple(full for _ in range(W)))

    @staticmethod
    def from_str(text: str) -> "BoardState":
        """
        上の行から順に並べた盤面テキストを読む。'#' と 'X' がブロック、'.' が空き。
        空行と行頭/行末の空白は無視。
        """
        rows = [line.strip() for line in text.strip().splitlines() if line.strip()]
        cols = [0] * W
        for y, line in enumerate(reversed(rows)):
            if len(line) != W:
                raise BoardParseError(f"row {y} has {len(line)} cells (expected {W}): {line!r}")
            for x, ch in enumerate(line):
                if ch in '#X':
                    cols[x] |= 1 << y
                elif ch != '.':
                    raise BoardParseError(f"unexpected character {ch!r} in row {y}")
        return BoardState(tuple(cols))


class BoardParseError(ValueError):
    pass


# ──────────────────  Low-level helpers  ──────────────────
def _valid_pos(st: BoardState, kind: str, rot: int, x: int, y: int) -> bool:
    """盤外 or 既存ブロック衝突があれば False。上方向は無制限。"""
    cols = st.cols
    for dx, dy in PIECE_SHAPES[kind][rot]:
        xx, yy = x + dx, y + dy
        if xx < 0 or xx >= MATRIX_W:      # 左右壁
            return False
        if yy < 0:                        # 床より下
            return False
        if (cols[xx] >> yy) & 1:          # 既存ブロック
            return False
    return True


# ────────── 回転システム ──────────
class RotationSystem:
    """キックなし (その場回転のみ)。"""
    name = "nokick"

    def kicks(self, kind: str, rot_from: int, rot_to: int) -> List[Cell]:
        return [(0, 0)]


class SRS(RotationSystem):
    """SRS キックテーブル"""
    name = "srs"

    def kicks(self, kind: str, rot_from: int, rot_to: int) -> List[Cell]:
        if kind == 'O':
            return [(0, 0)]
        if kind == 'I':
            return I_KICKS.get((rot_from, rot_to), [(0, 0)])
        return JLSTZ_KICKS.get((rot_from, rot_to), [(0, 0)])


ROTATION_SYSTEMS: Dict[str, RotationSystem] = {"srs": SRS(), "nokick": RotationSystem()}

MOVE_TYPES = ("softdrop", "harddrop")


def default_spawn(height: int) -> Spawn:
    """盤面 height 行より上に完全に収まる出現位置"""
    return (CFG.SPAWN_X, height + CFG.SPAWN_MARGIN)


# ───────────── 到達判定 (ビット盤面) ─────────────
_MOVE_CACHE: Dict[Tuple, FrozenSet[FrozenSet[Cell]]] = {}


@dataclass(frozen=True)
class MoveRules:
    """
    操作ルール = 回転システム + 移動タイプ。
      softdrop: <←,→,CW,CCW,↓> を着地後も続けて辿る
      harddrop: 出現高さで <←,→,CW,CCW> だけ辿り、そこから真下に落とす
    """
    rotation_system: str = "srs"
    move_type: str = "softdrop"

    def __post_init__(self):
        if self.rotation_system not in ROTATION_SYSTEMS:
            raise ValueError(f"unknown rotation system: {self.rotation_system!r}")
        if self.move_type not in MOVE_TYPES:
            raise ValueError(f"unknown move type: {self.move_type!r}")

    @staticmethod
    def srs(move_type: str = "softdrop") -> "MoveRules":
        return MoveRules("srs", move_type)

    @staticmethod
    def default() -> "MoveRules":
        return MoveRules("srs", CFG.MOVE_TYPE)

    def landings(self, st: BoardState, kind: str, spawn: Spawn) -> FrozenSet[FrozenSet[Cell]]:
        """spawn から辿れる着地位置のセル集合 (形が同じ向きは 1 つにまとまる)"""
        cache_key = (st.cols, kind, spawn, self.rotation_system, self.move_type)
        hit = _MOVE_CACHE.get(cache_key)
        if hit is not None:
            return hit
        if len(_MOVE_CACHE) >= CFG.MOVE_CACHE_SIZE:
            log.debug("move cache full (%d), clearing", len(_MOVE_CACHE))
            _MOVE_CACHE.clear()
        res = frozenset(_search_landings(st, kind, spawn,
                                         ROTATION_SYSTEMS[self.rotation_system],
                                         self.move_type == "softdrop"))
        _MOVE_CACHE[cache_key] = res
        return res

    def can_reach(self, kind: str, cells: Iterable[Cell], st: BoardState, spawn: Spawn) -> bool:
        """出現位置から cells の位置に置けるか"""
        return frozenset(cells) in self.landings(st, kind, spawn)


def _search_landings(st: BoardState, kind: str, spawn: Spawn,
                     rs: RotationSystem, softdrop: bool) -> List[FrozenSet[Cell]]:
    """
    1. 出現位置 (向き 0) から DFS。
    2. <←,→,CW,CCW> (+ softdrop なら ↓) で辿れる (rot,x,y) を列挙。
    3. 1 段落ちられない位置 (harddrop は落とした先) を着地とする。
    """
    start = (0, spawn[0], spawn[1])
    if not _valid_pos(st, kind, *start):
        return []                 # そもそも湧けない

    visited: set[Tuple[int, int, int]] = set()
    q = [start]
    landings: set = set()

    while q:
        rot, x, y = q.pop()
        if (rot, x, y) in visited:
            continue
        visited.add((rot, x, y))

        if softdrop:
            if not _valid_pos(st, kind, rot, x, y - 1):
                landings.add(frozenset(shape_cells(kind, rot, x, y)))
            else:
                q.append((rot, x, y - 1))          # ソフトドロップ１段
        else:
            gy = y
            while _valid_pos(st, kind, rot, x, gy - 1): gy -= 1
            landings.add(frozenset(shape_cells(kind, rot, x, gy)))

        # (1) 左右移動
        if _valid_pos(st, kind, rot, x - 1, y):
            q.append((rot, x - 1, y))
        if _valid_pos(st, kind, rot, x + 1, y):
            q.append((rot, x + 1, y))

        # (2) 回転 ±1  (キック適用, 最初に通ったものだけ)
        for drot in (1, -1):
            rot2 = (rot + drot) & 3
            for kx, ky in rs.kicks(kind, rot, rot2):
                nx, ny = x + kx, y + ky
                if _valid_pos(st, kind, rot2, nx, ny):
                    q.append((rot2, nx, ny))
                    break

    return list(landings)


def clear_move_cache():
    _MOVE_CACHE.clear()
