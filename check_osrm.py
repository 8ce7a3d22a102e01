#!/usr/bin/env python3
"""Smoke test for the configured OSRM and Nominatim endpoints."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from delivery_nav.config import settings
from delivery_nav.models.domain import Coordinate
from delivery_nav.services.geocoding import Geocoder
from delivery_nav.services.routing.osrm_client import OSRMClient, check_health
from delivery_nav.services.routing.results import Failed


def main():
    print("=" * 60)
    print("DeliveryNav Routing Services Check")
    print("=" * 60)
    print()

    print("1. Configuration")
    print(f"   OSRM Base URL: {settings.osrm_base_url}")
    print(f"   OSRM Profile: {settings.osrm_profile}")
    print(f"   Nominatim Base URL: {settings.nominatim_base_url}")
    print()

    print("2. OSRM health check...")
    if not check_health():
        print("   [ERROR] OSRM service is not responding")
        return 1
    print("   [OK] OSRM service is healthy and accessible")
    print()

    print("3. Segment directions request...")
    result = OSRMClient().route_segment(
        Coordinate(lat=37.8024, lng=-122.4058),  # Coit Tower
        Coordinate(lat=37.7955, lng=-122.3937),  # Ferry Building
    )
    if isinstance(result, Failed):
        print(f"   [ERROR] {result.reason}")
        return 1
    segment = result.value
    print(f"   [OK] {segment.distance_meters:.0f} m, {segment.duration_seconds:.0f} s")
    print(f"   [OK] {len(segment.coordinates)} geometry points, {len(segment.maneuvers)} maneuvers")
    print()

    print("4. Geocoding request...")
    coordinate = Geocoder().geocode("Ferry Building, San Francisco, CA")
    if coordinate is None:
        print("   [ERROR] Nominatim returned no match")
        return 1
    print(f"   [OK] ({coordinate.lat:.5f}, {coordinate.lng:.5f})")
    print()

    print("=" * 60)
    print("[SUCCESS] Routing services are reachable!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
