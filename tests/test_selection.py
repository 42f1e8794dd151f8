from geoconstruct.model.entities import Kind
from geoconstruct.model.selection import SelectionController


def non_empty_kinds(sel: SelectionController) -> list[Kind]:
    return sel.kinds()


def test_plain_selection_is_exclusive():
    sel = SelectionController()
    sel.select(Kind.POINT, 1)
    sel.toggle(Kind.POINT, 2)
    sel.select(Kind.CIRCLE, 0)
    assert non_empty_kinds(sel) == [Kind.CIRCLE]
    assert sel.selected(Kind.CIRCLE) == [0]
    assert sel.ordered_points() == []


def test_toggle_within_one_kind():
    sel = SelectionController()
    assert sel.toggle(Kind.LINE, 3)
    assert sel.toggle(Kind.LINE, 1)
    assert sel.selected(Kind.LINE) == [1, 3]
    assert sel.toggle(Kind.LINE, 3)
    assert sel.selected(Kind.LINE) == [1]


def test_point_order_follows_selection_sequence():
    sel = SelectionController()
    sel.select(Kind.POINT, 5)
    sel.toggle(Kind.POINT, 2)
    sel.toggle(Kind.POINT, 7)
    assert sel.ordered_points() == [5, 2, 7]

    sel.toggle(Kind.POINT, 5)
    assert sel.ordered_points() == [2, 7]
    sel.toggle(Kind.POINT, 5)
    assert sel.ordered_points() == [2, 7, 5]
    assert sel.selected(Kind.POINT) == [2, 5, 7]


def test_mixed_pair_allowed_but_not_more():
    sel = SelectionController()
    sel.select(Kind.LINE, 0)
    assert sel.toggle(Kind.POINT, 4)
    assert sel.count() == 2
    assert not sel.toggle(Kind.CIRCLE, 1)
    assert not sel.toggle(Kind.POINT, 5)
    assert sel.items() == [(Kind.POINT, 4), (Kind.LINE, 0)]


def test_same_kind_is_not_limited_to_two():
    sel = SelectionController()
    for i in range(4):
        assert sel.toggle(Kind.POINT, i)
    assert sel.count(Kind.POINT) == 4


def test_larger_selection_rejects_other_kind():
    sel = SelectionController()
    sel.toggle(Kind.POINT, 0)
    sel.toggle(Kind.POINT, 1)
    assert not sel.toggle(Kind.LINE, 0)
    assert sel.kinds() == [Kind.POINT]


def test_include_moves_point_to_end_and_drops_other_kinds():
    sel = SelectionController()
    sel.select(Kind.POINT, 1)
    sel.toggle(Kind.POINT, 2)
    sel.include(Kind.POINT, 1)
    assert sel.ordered_points() == [2, 1]

    sel.select(Kind.CIRCLE, 0)
    sel.include(Kind.POINT, 3)
    assert sel.kinds() == [Kind.POINT]
    assert sel.ordered_points() == [3]


def test_clear():
    sel = SelectionController()
    sel.select(Kind.EXTENDED_LINE, 2)
    sel.clear()
    assert sel.is_empty()
    assert sel.items() == []
