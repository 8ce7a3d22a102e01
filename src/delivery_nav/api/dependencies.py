"""Shared request dependencies."""

from __future__ import annotations

from fastapi import Request

from ..services.geocoding import Geocoder


def get_geocoder(request: Request) -> Geocoder:
    """Return the application-wide geocoder so its cache outlives a request."""
    return request.app.state.geocoder
