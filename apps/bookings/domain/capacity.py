"""Guest count validation against room-type capacity."""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class GuestRequest:
    room_type_id: int
    guests: int


@dataclass(frozen=True)
class RoomCapacity:
    room_type_id: int
    name: str
    capacity: int


@dataclass(frozen=True)
class CapacityError:
    room_type_id: int
    room_name: str
    capacity: int
    requested: int


@dataclass(frozen=True)
class CapacityValidationResult:
    valid: bool
    errors: list[CapacityError]


def exceeds_capacity(guest_count: int, room_capacity: int) -> bool:
    return guest_count > room_capacity


def validate_guest_capacity(
    requests: Iterable[GuestRequest],
    rooms: Iterable[RoomCapacity],
) -> CapacityValidationResult:
    """
    Check each requested item's guest count against its room type.

    Unknown room types are skipped; existence is validated elsewhere.
    """
    room_map = {room.room_type_id: room for room in rooms}
    errors: list[CapacityError] = []

    for request in requests:
        room = room_map.get(request.room_type_id)
        if room is None:
            continue
        if exceeds_capacity(request.guests, room.capacity):
            errors.append(CapacityError(
                room_type_id=room.room_type_id,
                room_name=room.name,
                capacity=room.capacity,
                requested=request.guests,
            ))

    return CapacityValidationResult(valid=not errors, errors=errors)


def format_capacity_error(error: CapacityError) -> str:
    return (
        f"{error.room_name} has a maximum capacity of {error.capacity} guests, "
        f"but {error.requested} were requested."
    )


def format_capacity_errors(result: CapacityValidationResult) -> str:
    if result.valid:
        return ""
    if len(result.errors) == 1:
        return format_capacity_error(result.errors[0])
    messages = "\n".join(format_capacity_error(error) for error in result.errors)
    return f"Guest count exceeds capacity for {len(result.errors)} rooms:\n{messages}"
