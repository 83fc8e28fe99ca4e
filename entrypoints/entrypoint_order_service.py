#!/usr/bin/env python3
# entrypoint_order_service.py
"""
Точка входа для Order Service.
Порт: HTTP_PORT (по умолчанию 8080)
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import settings
from src.common.logger import log_info, setup_logging
from src.common.constants import TypeMsg


async def main() -> None:
    """Запуск Order Service."""
    setup_logging()
    await log_info(
        f"Запуск Order Service на порту {settings.http.HTTP_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.order_service.app:app",
        host=settings.http.HTTP_HOST,
        port=settings.http.HTTP_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
