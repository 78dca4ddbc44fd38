import pytest

from shapes import SHAPES, ShapeCounter, check_shape


def test_shape_order():
    assert SHAPES == ('T', 'I', 'O', 'L', 'J', 'S', 'Z')
    with pytest.raises(ValueError):
        check_shape('X')


def test_counter_basics():
    counter = ShapeCounter.from_shapes("TTIO")
    assert len(counter) == 4
    assert counter['T'] == 2
    assert counter['Z'] == 0
    assert counter.to_pairs() == [('T', 2), ('I', 1), ('O', 1)]
    assert counter.to_shapes() == ['T', 'T', 'I', 'O']
    assert len(ShapeCounter.empty()) == 0
    assert len(ShapeCounter.one_of_each()) == 7


def test_counter_is_hashable_and_order_free():
    assert ShapeCounter.from_shapes("IOT") == ShapeCounter.from_shapes("TIO")
    assert len({ShapeCounter.from_shapes("IOT"), ShapeCounter.from_shapes("OTI")}) == 1


def test_contains_all():
    big = ShapeCounter.one_of_each() + ShapeCounter.from_shapes("T")
    assert big.contains_all(ShapeCounter.from_shapes("TTI"))
    assert not big.contains_all(ShapeCounter.from_shapes("III"))
    assert big.contains_all(ShapeCounter.empty())
