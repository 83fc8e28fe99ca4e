from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.common.constants import TypeMsg
from src.common.logger import log_info, setup_logging
from src.config import settings
from src.infra.database import close_db, get_db, init_db
from src.infra.product_client import close_product_client, init_product_client
from src.services.order_service.errors import register_error_handlers
from src.services.order_service.routes import router
from src.shared.models.common import HealthStatus

SERVICE_NAME = "order_service"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    await log_info("Starting Order Service...", type_msg=TypeMsg.INFO)
    await init_db()
    init_product_client()

    yield

    # Shutdown
    await log_info("Shutting down Order Service...", type_msg=TypeMsg.INFO)
    await close_product_client()
    await close_db()


app = FastAPI(
    title="Order Service",
    description="Microservice for creating and retrieving customer orders",
    version=settings.system.VERSION,
    lifespan=lifespan
)

register_error_handlers(app)
app.include_router(router)


@app.get("/health", response_model=HealthStatus)
async def health_check():
    db_ok = await get_db().health_check()
    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if db_ok else "degraded",
        version=settings.system.VERSION,
        dependencies={"postgres": "healthy" if db_ok else "unhealthy"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.services.order_service.app:app",
        host=settings.http.HTTP_HOST,
        port=settings.http.HTTP_PORT,
    )
