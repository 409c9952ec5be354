"""Typed delivery schedule configuration.

The site_config table stores operational settings as flat strings. This
module resolves them once into an immutable DeliveryConfig that is passed
explicitly to the date calculations. Parsing never fails: a bad value
falls back to its default so a typo in configuration cannot block
scheduling.

Expected keys:
- SUBSCRIPTION_DELIVERY_DAY  -> delivery_day (1-28, default 5)
- FIRST_DELIVERY_DATE        -> first_delivery_date (YYYY-MM-DD or None)
- SUBSCRIPTION_ENABLED       -> subscription_enabled (default True)
- REVEALED_BOX_ENABLED       -> revealed_box_enabled (default False)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)

DELIVERY_DAY_KEY = "SUBSCRIPTION_DELIVERY_DAY"
FIRST_DELIVERY_DATE_KEY = "FIRST_DELIVERY_DATE"
SUBSCRIPTION_ENABLED_KEY = "SUBSCRIPTION_ENABLED"
REVEALED_BOX_ENABLED_KEY = "REVEALED_BOX_ENABLED"

DEFAULT_DELIVERY_DAY = 5
MIN_DELIVERY_DAY = 1
MAX_DELIVERY_DAY = 28


@dataclass(frozen=True)
class DeliveryConfig:
    """Delivery schedule configuration.

    Attributes:
        delivery_day: Day of month for recurring deliveries (1-28).
        first_delivery_date: One-off override for the very first delivery.
        subscription_enabled: Whether new subscriptions are accepted.
        revealed_box_enabled: Whether revealed box contents are shown.
    """

    delivery_day: int = DEFAULT_DELIVERY_DAY
    first_delivery_date: date | None = None
    subscription_enabled: bool = True
    revealed_box_enabled: bool = False


def _parse_delivery_day(raw: str | None) -> int:
    if not raw:
        return DEFAULT_DELIVERY_DAY
    try:
        parsed = int(raw.strip())
    except ValueError:
        logger.debug("Ignoring non-numeric %s=%r", DELIVERY_DAY_KEY, raw)
        return DEFAULT_DELIVERY_DAY
    if not MIN_DELIVERY_DAY <= parsed <= MAX_DELIVERY_DAY:
        logger.debug("Ignoring out-of-range %s=%r", DELIVERY_DAY_KEY, raw)
        return DEFAULT_DELIVERY_DAY
    return parsed


def parse_iso_date(raw: str | None) -> date | None:
    """Parse a YYYY-MM-DD string, returning None when unset or invalid."""
    if not raw:
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        logger.debug("Ignoring unparseable date %r", raw)
        return None


def get_delivery_config(config_map: Mapping[str, str | None]) -> DeliveryConfig:
    """Parse raw site_config key/value pairs into a DeliveryConfig.

    Args:
        config_map: Flat mapping of config keys to raw string values.

    Returns:
        DeliveryConfig with defaults substituted for missing or bad values.
    """
    subscription_enabled = config_map.get(SUBSCRIPTION_ENABLED_KEY)
    revealed_box_enabled = config_map.get(REVEALED_BOX_ENABLED_KEY)

    return DeliveryConfig(
        delivery_day=_parse_delivery_day(config_map.get(DELIVERY_DAY_KEY)),
        first_delivery_date=parse_iso_date(config_map.get(FIRST_DELIVERY_DATE_KEY)),
        subscription_enabled=(
            (subscription_enabled or "").strip().lower() != "false"
        ),
        revealed_box_enabled=(
            (revealed_box_enabled or "").strip().lower() == "true"
        ),
    )
