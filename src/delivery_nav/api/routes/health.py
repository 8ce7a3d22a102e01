"""Health endpoints."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Response, status

from ...config import settings
from ...services.geocoding import Geocoder
from ...services.geocoding.nominatim import check_health as check_nominatim_health
from ...services.routing.osrm_client import check_health as check_osrm_health
from ..dependencies import get_geocoder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Liveness only; does not touch OSRM or Nominatim."""
    return {"status": "ok", "service": settings.app_name}


def _run_check(name: str, check: Callable[[], bool]) -> dict:
    try:
        return {"healthy": bool(check())}
    except Exception as exc:
        logger.warning(f"{name} health check raised: {exc}")
        return {"healthy": False, "error": str(exc)}


@router.get("/services", status_code=status.HTTP_200_OK)
def health_services(response: Response, geocoder: Geocoder = Depends(get_geocoder)) -> dict:
    """Report whether the routing and geocoding backends answer requests.

    Responds 503 when either is unreachable; route planning still works then,
    with straight-line estimates or fewer stops.
    """
    services = {
        "osrm": _run_check("OSRM", check_osrm_health),
        "nominatim": _run_check("Nominatim", lambda: check_nominatim_health(geocoder.client)),
    }
    healthy = all(service["healthy"] for service in services.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"healthy": healthy, "services": services}
