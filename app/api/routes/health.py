from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.core.container import ServiceContainer, get_container
from app.schemas.admin import HealthReport

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthReport)
def health_check(
    response: Response,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> HealthReport:
    """Health check endpoint.

    Checks the record store and the shared key-value store. Used by load
    balancers and monitoring systems to determine service health.

    Returns:
        HealthReport: Overall status plus one entry per dependency. The HTTP
            status is 503 when any dependency is unhealthy.
    """
    report = container.health.check()
    if report.status != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
