import pytest

from kagekero.aabb import AABB, do_intersect


def box(left, top, right, bottom):
    return AABB(bottom=bottom, left=left, right=right, top=top)


def test_overlapping_boxes_intersect():
    a = box(0, 0, 10, 10)
    b = box(5, 5, 15, 15)
    assert a.intersects(b) is True
    assert do_intersect(a, b) is True


def test_box_intersects_itself():
    a = box(1.5, 2.5, 3.5, 4.5)
    assert do_intersect(a, a) is True


def test_touching_edges_count_as_intersection():
    a = box(0, 0, 10, 10)
    b = box(10, 0, 20, 10)
    assert do_intersect(a, b) is True


@pytest.mark.parametrize(
    "other",
    [
        box(11, 0, 20, 10),
        box(-20, 0, -1, 10),
        box(0, 11, 10, 20),
        box(0, -20, 10, -1),
    ],
)
def test_separated_boxes_do_not_intersect(other):
    a = box(0, 0, 10, 10)
    assert do_intersect(a, other) is False
    assert do_intersect(other, a) is False


def test_contained_box_intersects():
    outer = box(0, 0, 100, 100)
    inner = box(40, 40, 60, 60)
    assert do_intersect(outer, inner) is True
    assert do_intersect(inner, outer) is True


@pytest.mark.parametrize("shift", [0.0, 3.0, 9.9, 10.0, 10.1, 25.0])
def test_intersection_is_symmetric(shift):
    a = box(0, 0, 10, 10)
    b = box(shift, shift, shift + 10, shift + 10)
    assert do_intersect(a, b) == do_intersect(b, a)


def test_aabb_is_immutable():
    a = box(0, 0, 1, 1)
    with pytest.raises(AttributeError):
        a.left = 5
    assert a.left == 0
    assert (a.top, a.right, a.bottom) == (0, 1, 1)