"""
Prometheus metrics endpoint for monitoring infrastructure.

This is a PUBLIC endpoint following standard Prometheus practices. It
exposes the metrics collected by the @measure_operation decorators, the
resource-conflict counter and the capability fallback counter.
"""

from fastapi import APIRouter, Response

from app.monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics/prometheus", include_in_schema=False)
def prometheus_scrape() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-store"},
    )
