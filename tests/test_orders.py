import pytest

from orders import FuzzyShapeOrder, ShapeOrder, ShapeSequence, fuzzy


def _strs(orders):
    return {str(o) for o in orders}


def test_expand_single_unknown():
    orders = fuzzy("T*O").expand_as_wildcard()
    assert [str(o) for o in orders] == ["TTO", "TIO", "TOO", "TLO", "TJO", "TSO", "TZO"]
    assert all(isinstance(o, ShapeOrder) for o in orders)


def test_expand_without_unknown():
    assert [str(o) for o in fuzzy("TIO").expand_as_wildcard()] == ["TIO"]
    assert not fuzzy("TIO").has_unknown()


def test_walk_two_unknowns():
    seen = []
    fuzzy("**").walk_as_wildcard(seen.append)
    assert len(seen) == 49
    assert seen[0] == ('T', 'T')
    assert seen[1] == ('T', 'I')
    assert seen[-1] == ('Z', 'Z')


def test_empty_fuzzy_order_fails():
    with pytest.raises(AssertionError):
        FuzzyShapeOrder(()).expand_as_wildcard()


def test_invalid_shape_in_order():
    with pytest.raises(ValueError):
        fuzzy("T?O")


def test_infer_orders_without_hold():
    seq = ShapeSequence(tuple("TIOL"))
    assert _strs(seq.infer_orders(3, False)) == {"TIO"}
    assert _strs(seq.infer_orders(5, False)) == {"TIOL*"}


def test_infer_orders_with_hold_reaches_past_the_end():
    seq = ShapeSequence(tuple("TIO"))
    assert _strs(seq.infer_orders(3, True)) == {
        "TIO", "TI*", "TO*", "TOI", "IO*", "IOT", "IT*", "ITO"}


def test_infer_orders_with_hold_inside_sequence():
    orders = ShapeSequence(tuple("TIOL")).infer_orders(3, True)
    assert len(orders) == 8
    assert not any(o.has_unknown() for o in orders)
    assert "OT" not in {str(o)[:2] for o in orders}


def test_sequence_counter():
    assert ShapeSequence(tuple("TTI")).to_counter()['T'] == 2
