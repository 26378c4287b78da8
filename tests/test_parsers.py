import pytest

from floor_replan.parsers import (
    ParsedLine,
    SlotOrder,
    classify_parts,
    has_sku_code,
    is_category_header,
    is_quantity_header,
    looks_like_size,
    parse_text_line,
    split_parts,
)


def test_size_then_color():
    assert parse_text_line("[123] Dress (M, Red)") == ParsedLine("123", "M", "Red")


def test_color_then_size_is_reordered():
    assert parse_text_line("[123] Dress (Red, M)") == ParsedLine("123", "M", "Red")


def test_single_color():
    assert parse_text_line("[123] Dress (Red)") == ParsedLine("123", "", "Red")


def test_single_size():
    assert parse_text_line("[123] Dress (6Y)") == ParsedLine("123", "6Y", "")


def test_no_parenthetical_group():
    assert parse_text_line("[9] Hat") == ParsedLine("9", "", "")


def test_empty_parenthetical_group():
    assert parse_text_line("[12] Top ()") == ParsedLine("12", "", "")


def test_last_group_wins_and_arabic_comma_splits():
    line = parse_text_line("[55] Set (Pink) (6/7، منت)")
    assert line == ParsedLine("55", "6/7", "منت")


def test_arabic_color_first():
    assert parse_text_line("[55] طقم (منت, 6)") == ParsedLine("55", "6", "منت")


def test_only_first_two_parts_are_used():
    assert parse_text_line("[12] Top (Navy, L, extra)") == ParsedLine("12", "L", "Navy")


def test_first_bracketed_code_is_the_sku():
    assert parse_text_line("[12] [34] Pack").sku == "12"


def test_lines_without_code_are_not_products():
    line = parse_text_line("Dresses")
    assert line.sku == ""
    assert not line.is_product
    assert not parse_text_line("[abc] Dress (M)").is_product
    assert not parse_text_line(None).is_product


@pytest.mark.parametrize(
    "value",
    ["M", "xl", "XXXL", "10", "10.5", "6Y", "6 mo", "18MONTHS", "3 years", "6/7", "6 - 7", 7],
)
def test_looks_like_size(value):
    assert looks_like_size(value)


@pytest.mark.parametrize("value", ["Red", "", None, "XXXXL", "6/7/8", "منت", "M L"])
def test_does_not_look_like_size(value):
    assert not looks_like_size(value)


def test_split_parts_trims_and_drops_empty():
    assert split_parts(" Red ,, M ") == ["Red", "M"]
    assert split_parts("   ") == []


def test_classify_parts():
    assert classify_parts([]) == SlotOrder.EMPTY
    assert classify_parts(["XL"]) == SlotOrder.SINGLE_SIZE
    assert classify_parts(["Blue"]) == SlotOrder.SINGLE_COLOR
    assert classify_parts(["M", "Red"]) == SlotOrder.SIZE_FIRST
    assert classify_parts(["Red", "M"]) == SlotOrder.COLOR_FIRST
    # Two sizes or two colors are ambiguous and read color-first.
    assert classify_parts(["6", "7"]) == SlotOrder.COLOR_FIRST
    assert classify_parts(["Red", "Blue"]) == SlotOrder.COLOR_FIRST


def test_header_helpers():
    assert has_sku_code("[1] Item")
    assert not has_sku_code("Dresses")
    assert is_quantity_header(" QUANTITY ")
    assert not is_quantity_header("Quantities")
    assert is_category_header("Dresses")
    assert not is_category_header("Quantity")
    assert not is_category_header("[1] Item")
    assert not is_category_header("  ")
