"""Room catalog and pricing."""

from resort_finance.pricing.catalog import (
    DEFAULT_ROOM_TYPES,
    RoomType,
    all_room_numbers,
    get_room_type,
    normalize_room_number,
)
from resort_finance.pricing.calculator import (
    DEFAULT_DEPOSIT_RATE,
    deposit,
    nights,
    total_amount,
)

__all__ = [
    "DEFAULT_DEPOSIT_RATE",
    "DEFAULT_ROOM_TYPES",
    "RoomType",
    "all_room_numbers",
    "deposit",
    "get_room_type",
    "nights",
    "normalize_room_number",
    "total_amount",
]
