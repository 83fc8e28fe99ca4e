from fastapi import APIRouter, Depends, status

from src.core.orders.models import OrderDTO, OrderRequestDTO
from src.core.orders.service import OrderService
from src.services.order_service.dependencies import get_order_service
from src.shared.models.common import ErrorResponse

router = APIRouter(prefix="/orders", tags=["orders"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=OrderDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_order(
    request: OrderRequestDTO,
    service: OrderService = Depends(get_order_service)
):
    return await service.create_order(request)


@router.get("/", response_model=OrderDTO, responses=ERROR_RESPONSES, include_in_schema=False)
async def get_order_without_id(
    service: OrderService = Depends(get_order_service)
):
    # Пустой ID в пути: сервис отвечает 400 "id required"
    return await service.get_order_by_id("")


@router.get("/{order_id}", response_model=OrderDTO, responses=ERROR_RESPONSES)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service)
):
    return await service.get_order_by_id(order_id)
