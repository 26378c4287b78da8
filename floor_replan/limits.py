import logging
import math

from .errors import NotFoundError, ValidationError
from .schemas import LimitRule, LimitsConfig

logger = logging.getLogger(__name__)


def sanitize_bound(value, field: str = "value") -> int:
    """
    Turns user input into a pull bound. Negative and fractional numbers are
    floored to a non-negative int; anything that is not a number is rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a number")
    return max(0, math.floor(number))


def resolve(config: LimitsConfig, sku: str) -> tuple[int, int]:
    """Effective (min, max) for a SKU: its override if present, else the defaults."""
    rule = config.skus.get(str(sku))
    if rule is not None:
        low, high = rule.min, rule.max
    else:
        low, high = config.default_min, config.default_max
    return max(0, int(low)), max(0, int(high))


def clamp(balance: int, min_qty: int, max_qty: int) -> int:
    """
    Pull quantity for a balance. Below the minimum nothing is pulled;
    otherwise the pull is capped at the maximum.
    """
    if balance < min_qty:
        return 0
    return min(balance, max_qty)


def set_default(config: LimitsConfig, min_qty, max_qty) -> LimitsConfig:
    low = sanitize_bound(min_qty, "defaultMin")
    high = sanitize_bound(max_qty, "defaultMax")
    config.default_min = low
    config.default_max = high
    logger.info(f"Default pull limits set to min={low}, max={high}.")
    return config


def set_sku(config: LimitsConfig, sku, min_qty, max_qty) -> LimitRule:
    sku = str(sku if sku is not None else "").strip()
    if not sku:
        raise ValidationError("Missing sku")
    rule = LimitRule(
        min=sanitize_bound(min_qty, "min"), max=sanitize_bound(max_qty, "max")
    )
    config.skus[sku] = rule
    logger.info(f"Pull limits for SKU {sku} set to min={rule.min}, max={rule.max}.")
    return rule


def remove_sku(config: LimitsConfig, sku) -> LimitRule:
    sku = str(sku if sku is not None else "").strip()
    if not sku:
        raise ValidationError("Missing sku")
    if sku not in config.skus:
        raise NotFoundError(f"No limits configured for SKU {sku}")
    return config.skus.pop(sku)
