import pytest

from floor_replan.aggregator import (
    AggregatedRow,
    AwaitingCategory,
    InCategory,
    aggregate_rows,
    coerce_qty,
    step,
    to_key_totals,
)


def test_same_key_sums_across_repeated_headers():
    rows = [
        ("Dresses", None),
        ("[1] Dress (M, Red)", 2),
        ("Dresses", None),
        ("[1] Dress (Red, M)", 3),
    ]
    assert aggregate_rows(rows) == [AggregatedRow("Dresses", "1", "M", "Red", 5)]


def test_items_before_any_header_have_no_category():
    assert aggregate_rows([("[5] Belt (Black)", 1)]) == [
        AggregatedRow("", "5", "", "Black", 1)
    ]


def test_quantity_header_does_not_move_the_cursor():
    rows = [("Tops",), ("QUANTITY", "qty"), ("[2] Tee (S)", 1)]
    assert aggregate_rows(rows)[0].category == "Tops"


def test_text_without_numeric_code_becomes_a_category():
    rows = [("[x] Misc", None), ("[3] Scarf (Green)", 2)]
    assert aggregate_rows(rows)[0].category == "[x] Misc"


def test_blank_rows_are_skipped():
    rows = [("", 5), (None, 5), (float("nan"), 5), ("   ", 1), ("[4] Cap (L)", 1)]
    assert aggregate_rows(rows) == [AggregatedRow("", "4", "L", "", 1)]


def test_first_seen_order():
    rows = [("A", None), ("[2] x (S)", 1), ("[1] y (S)", 1), ("[2] x (S)", 1)]
    assert [r.sku for r in aggregate_rows(rows)] == ["2", "1"]


def test_same_key_in_two_categories_stays_split_until_rekeyed():
    rows = [
        ("Sale", None),
        ("[1] Dress (M, Red)", 2),
        ("New", None),
        ("[1] Dress (M, Red)", 3),
    ]
    aggregated = aggregate_rows(rows)
    assert len(aggregated) == 2
    assert to_key_totals(aggregated) == {"1||M||Red": 5}


@pytest.mark.parametrize(
    "raw, expected",
    [(4, 4), ("4", 4), (" 3 ", 3), (2.0, 2), (2.5, 2), ("2.9", 2), ("abc", 0), ("", 0),
     (None, 0), (float("nan"), 0), (float("inf"), 0), (-2, -2)],
)
def test_coerce_qty(raw, expected):
    assert coerce_qty(raw) == expected


def test_step_transitions():
    state, out = step(AwaitingCategory(), ("Shoes", None))
    assert state == InCategory("Shoes")
    assert out is None

    state, out = step(state, ("[8] Sneaker (42, White)", "2"))
    assert state == InCategory("Shoes")
    assert out == AggregatedRow("Shoes", "8", "42", "White", 2)

    assert AwaitingCategory().category == ""
