"""Inventory router for room, room type and meal plan listings."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import InventoryServiceDependency
from ..schemas.inventory import (
    ListMealPlansResponse,
    ListRoomsRequest,
    ListRoomsResponse,
    ListRoomTypesResponse,
)
from ..services.inventory_service import InventoryService

router = APIRouter(prefix="/v1/inventory", tags=["inventory"])


@router.post("/rooms", response_model=ListRoomsResponse)
async def list_rooms(
    request: ListRoomsRequest,
    inventory_service: InventoryService = InventoryServiceDependency,
) -> JSONResponse:
    """List rooms, optionally filtered by room type and housekeeping status."""
    response_data = ListRoomsResponse(items=inventory_service.list_rooms(request))
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/room-types", response_model=ListRoomTypesResponse)
async def list_room_types(
    inventory_service: InventoryService = InventoryServiceDependency,
) -> JSONResponse:
    response_data = ListRoomTypesResponse(items=inventory_service.list_room_types())
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/meal-plans", response_model=ListMealPlansResponse)
async def list_meal_plans(
    inventory_service: InventoryService = InventoryServiceDependency,
) -> JSONResponse:
    """Meal plans currently on sale."""
    response_data = ListMealPlansResponse(items=inventory_service.list_meal_plans())
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
