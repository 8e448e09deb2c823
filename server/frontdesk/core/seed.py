"""Demo property loaded at startup when ``seed_demo_data`` is on."""

from ..schemas.inventory import MealPlan, Room, RoomStatus, RoomType
from ..schemas.snapshot import PropertySnapshot


def demo_room_types() -> list[RoomType]:
    return [
        RoomType(id="rt-standard", name="Standard Single", base_price=80.0, capacity=1),
        RoomType(id="rt-deluxe", name="Deluxe Double", base_price=120.0, capacity=2),
        RoomType(id="rt-family", name="Family Suite", base_price=200.0, capacity=4),
    ]


def demo_meal_plans() -> list[MealPlan]:
    return [
        MealPlan(id="mp-bb", name="Bed & Breakfast", code="BB", per_person_rate=15.0),
        MealPlan(id="mp-hb", name="Half Board", code="HB", per_person_rate=25.0),
        MealPlan(id="mp-fb", name="Full Board", code="FB", per_person_rate=35.0, per_room_rate=5.0),
        MealPlan(id="mp-ai", name="All Inclusive", code="AI", per_person_rate=50.0, per_room_rate=10.0),
    ]


def demo_rooms() -> list[Room]:
    return [
        Room(id="room-101", room_number="101", room_type_id="rt-standard"),
        Room(id="room-102", room_number="102", room_type_id="rt-standard"),
        Room(id="room-201", room_number="201", room_type_id="rt-deluxe"),
        Room(id="room-202", room_number="202", room_type_id="rt-deluxe"),
        Room(id="room-203", room_number="203", room_type_id="rt-deluxe", status=RoomStatus.MAINTENANCE),
        Room(id="room-301", room_number="301", room_type_id="rt-family"),
    ]


def demo_snapshot() -> PropertySnapshot:
    """Inventory for a small demo hotel with no reservations."""
    return PropertySnapshot(
        rooms=demo_rooms(),
        room_types=demo_room_types(),
        meal_plans=demo_meal_plans(),
    )
