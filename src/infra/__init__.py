"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL и каталог товаров.
"""

from src.infra.database import DatabaseManager, get_db
from src.infra.product_client import ProductClient, ProductSnapshot, get_product_client

__all__ = [
    "DatabaseManager",
    "get_db",
    "ProductClient",
    "ProductSnapshot",
    "get_product_client",
]
