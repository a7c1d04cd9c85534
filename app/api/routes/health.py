import logging

from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.health import HealthResponse
from app.services.health_service import HealthService

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    service = HealthService(get_settings())
    response = service.get_status()
    if response.status != "ok":
        logger.warning("Health check degraded pipeline=%s", response.pipeline.model_dump())
    return response
