import re
from enum import Enum
from typing import NamedTuple

from . import settings

# Item code is the first run of digits in square brackets, e.g. "[10234] Dress".
SKU_PATTERN = re.compile(r"\[(\d+)\]", re.ASCII)
# Non-nested parenthetical groups; the last one carries color/size.
PAREN_PATTERN = re.compile(r"\(([^()]*)\)")
# ASCII comma or Arabic comma.
PART_SEPARATOR = re.compile(r"[,،]")

_NUMBER_SIZE = re.compile(r"^\d+(\.\d+)?$", re.ASCII)
_LETTER_SIZE = re.compile(
    r"^(" + "|".join(settings.SIZE_LETTER_TOKENS) + r")$"
)
_AGE_SIZE = re.compile(
    r"^\d+\s*(" + "|".join(settings.AGE_SIZE_SUFFIXES) + r")$", re.ASCII
)
_RANGE_SIZE = re.compile(r"^\d+\s*[-/]\s*\d+$", re.ASCII)


class ParsedLine(NamedTuple):
    sku: str
    size: str
    color: str

    @property
    def is_product(self) -> bool:
        return bool(self.sku)


NOT_A_PRODUCT = ParsedLine("", "", "")


class SlotOrder(Enum):
    """How the parts of a "(a, b)" group map onto size and color."""

    EMPTY = "empty"
    SINGLE_SIZE = "single_size"
    SINGLE_COLOR = "single_color"
    SIZE_FIRST = "size_first"
    COLOR_FIRST = "color_first"


def looks_like_size(value) -> bool:
    """True for numeric sizes, letter sizes, age sizes (6Y, 18MO) and ranges (6/7)."""
    s = str(value if value is not None else "").strip().upper()
    if not s:
        return False
    return bool(
        _NUMBER_SIZE.match(s)
        or _LETTER_SIZE.match(s)
        or _AGE_SIZE.match(s)
        or _RANGE_SIZE.match(s)
    )


def split_parts(group: str) -> list[str]:
    """Splits a parenthetical group into at most two trimmed, non-empty parts."""
    parts = [p.strip() for p in PART_SEPARATOR.split(group)]
    return [p for p in parts if p][:2]


def classify_parts(parts: list[str]) -> SlotOrder:
    """
    Decides the slot order of a parenthetical group.
    Two parts are read as (size, color) only when the first is a size and the
    second is not; every other pair is read as (color, size).
    """
    if not parts:
        return SlotOrder.EMPTY
    if len(parts) == 1:
        return SlotOrder.SINGLE_SIZE if looks_like_size(parts[0]) else SlotOrder.SINGLE_COLOR
    if looks_like_size(parts[0]) and not looks_like_size(parts[1]):
        return SlotOrder.SIZE_FIRST
    return SlotOrder.COLOR_FIRST


def has_sku_code(text: str) -> bool:
    return SKU_PATTERN.search(str(text)) is not None


def is_quantity_header(text: str) -> bool:
    return str(text).strip().lower() == settings.QUANTITY_HEADER_TOKEN


def is_category_header(text: str) -> bool:
    """Any non-blank line without an item code, except the quantity column header."""
    text = str(text if text is not None else "").strip()
    return bool(text) and not has_sku_code(text) and not is_quantity_header(text)


def parse_text_line(text) -> ParsedLine:
    """
    Extracts sku, size and color from a report line such as
    "[123] Dress (Red, M)". Lines without a bracketed code are not products
    and come back with an empty sku.
    """
    text = str(text if text is not None else "")
    sku_match = SKU_PATTERN.search(text)
    if not sku_match:
        return NOT_A_PRODUCT
    sku = sku_match.group(1)

    groups = PAREN_PATTERN.findall(text)
    if not groups:
        return ParsedLine(sku, "", "")

    parts = split_parts(groups[-1])
    order = classify_parts(parts)

    if order == SlotOrder.SINGLE_SIZE:
        return ParsedLine(sku, parts[0], "")
    if order == SlotOrder.SINGLE_COLOR:
        return ParsedLine(sku, "", parts[0])
    if order == SlotOrder.SIZE_FIRST:
        return ParsedLine(sku, parts[0], parts[1])
    if order == SlotOrder.COLOR_FIRST:
        return ParsedLine(sku, parts[1], parts[0])
    return ParsedLine(sku, "", "")
