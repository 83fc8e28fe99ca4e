from src.core.orders.repository import OrderRepository
from src.core.orders.service import OrderService
from src.infra.database import DatabaseManager, get_db
from src.infra.product_client import ProductClient, get_product_client


def get_database() -> DatabaseManager:
    return get_db()


def get_order_repository() -> OrderRepository:
    return OrderRepository(get_database())


def get_catalog_client() -> ProductClient:
    return get_product_client()


def get_order_service() -> OrderService:
    return OrderService(
        db=get_database(),
        repository=get_order_repository(),
        product_client=get_catalog_client(),
    )
