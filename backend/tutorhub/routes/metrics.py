# backend/tutorhub/routes/metrics.py
"""
Prometheus metrics endpoint.

Public, unauthenticated, following standard Prometheus practice. Exposes
the metrics collected by @measure_operation and the booking counters.
"""

from fastapi import APIRouter, Response

from ..core.metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
def get_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-store"},
    )
