"""
Room Catalog

Static mapping from room number to room type. Lookup only.

An unknown room number is NOT an error here: the front desk may check a
guest into a room the catalog does not list (e.g., a staff house), and the
pricing layer simply has no price for it.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RoomType(BaseModel):
    """One class of room with its nightly price."""
    model_config = ConfigDict(frozen=True)

    name: str
    price_per_night: Decimal = Field(..., ge=0, description="THB per night")
    capacity: int = Field(..., ge=1, description="Maximum guests")
    description: str = ""
    room_numbers: tuple[str, ...] = ()


DEFAULT_ROOM_TYPES: tuple[RoomType, ...] = (
    RoomType(
        name="Standard",
        price_per_night=Decimal("1500"),
        capacity=2,
        description="ห้องพักมาตรฐาน",
        room_numbers=("101", "102", "103", "104", "105"),
    ),
    RoomType(
        name="Deluxe",
        price_per_night=Decimal("2500"),
        capacity=2,
        description="ห้องพักระดับดีลักซ์",
        room_numbers=("201", "202", "203", "204"),
    ),
    RoomType(
        name="Suite",
        price_per_night=Decimal("4000"),
        capacity=4,
        description="ห้องสวีท",
        room_numbers=("301", "302"),
    ),
    RoomType(
        name="Villa",
        price_per_night=Decimal("6000"),
        capacity=6,
        description="วิลล่าส่วนตัว",
        room_numbers=("V1", "V2", "V3"),
    ),
)


def normalize_room_number(room_number: str) -> str:
    """Room numbers are compared trimmed and upper-cased ("v1 " == "V1")."""
    return str(room_number).strip().upper()


def get_room_type(
    room_number: str,
    room_types: tuple[RoomType, ...] = DEFAULT_ROOM_TYPES,
) -> Optional[RoomType]:
    """Return the room type that lists this room number, or None."""
    wanted = normalize_room_number(room_number)
    for room_type in room_types:
        if wanted in room_type.room_numbers:
            return room_type
    return None


def all_room_numbers(room_types: tuple[RoomType, ...] = DEFAULT_ROOM_TYPES) -> list[str]:
    """Every room in catalog order (for pickers)."""
    return [number for room_type in room_types for number in room_type.room_numbers]
