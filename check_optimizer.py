#!/usr/bin/env python3
"""Script to verify route optimization service connectivity."""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from dispatch.config import settings
from dispatch.models.domain import Coordinate, DeliveryJob
from dispatch.services.routing.errors import CorrelationError, ProviderError
from dispatch.services.routing.optimization_client import RouteOptimizationClient, check_health


def main():
    print("=" * 60)
    print("Route Optimization Connection Test")
    print("=" * 60)
    print()

    print("1. Checking optimizer configuration...")
    if not settings.optimizer_access_key:
        print("   [ERROR] Optimizer access key is not configured")
        print("   Please set DISPATCH_OPTIMIZER_ACCESS_KEY in your .env file")
        return 1

    print(f"   [OK] Optimizer URL: {settings.optimizer_base_url}")
    print(f"   [OK] Optimizer profile: {settings.optimizer_profile}")
    print()

    print("2. Testing optimizer health check...")
    if not check_health():
        print("   [ERROR] Optimizer is not responding")
        return 1
    print("   [OK] Optimizer is reachable")
    print()

    print("3. Optimizing a sample route from the depot...")
    origin = Coordinate(settings.depot_longitude, settings.depot_latitude)
    stops = [
        DeliveryJob(stop_id="sample-1", coordinates=Coordinate(-79.3957, 43.6629), order_id="sample-1"),
        DeliveryJob(stop_id="sample-2", coordinates=Coordinate(-79.3470, 43.6510), order_id="sample-2"),
        DeliveryJob(stop_id="sample-3", coordinates=Coordinate(-79.4163, 43.7001), order_id="sample-3"),
    ]
    try:
        result = RouteOptimizationClient().optimize_route(origin, stops)
    except (ProviderError, CorrelationError) as e:
        print(f"   [ERROR] Optimization failed: {e}")
        return 1

    print(f"   [OK] Visit order: {', '.join(job.stop_id for job in result.ordered_jobs)}")
    print(f"   [OK] Duration: {result.total_duration_seconds} seconds")
    print(f"   [OK] Distance: {result.total_distance_meters} meters")
    print()
    print("=" * 60)
    print("[SUCCESS] Route optimization service is working")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
