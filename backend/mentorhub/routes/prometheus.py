"""
Prometheus metrics endpoint for monitoring infrastructure.

This is a PUBLIC endpoint (no authentication required) following
standard Prometheus practices. It exposes metrics collected from
the @measure_operation decorators throughout the application.
"""

from fastapi import APIRouter, HTTPException, Response

from ..core.config import settings
from ..monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter()


@router.get("/metrics", include_in_schema=False, response_class=Response, response_model=None)
async def get_prometheus_metrics() -> Response:
    """
    Expose Prometheus metrics for scraping.

    Returns:
        Response with Prometheus exposition format (text/plain)
    """
    if not settings.metrics_enabled:
        raise HTTPException(status_code=404, detail="Metrics are disabled")
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
