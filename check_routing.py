#!/usr/bin/env python3
"""Resolve one short route against the configured routing provider."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from itinerary.config import settings  # noqa: E402
from itinerary.errors import ProviderError  # noqa: E402
from itinerary.services.routing.models import Waypoint  # noqa: E402
from itinerary.services.routing.service import build_route_provider  # noqa: E402

# Two stops in central Kuala Lumpur
SAMPLE = [Waypoint(lat=3.1390, lng=101.6869), Waypoint(lat=3.1579, lng=101.7116)]


async def main() -> int:
    provider = build_route_provider(settings)
    print(f"Provider: {provider.name}")
    if not provider.configured:
        print("[ERROR] Provider is not configured; see check_env.py")
        return 1

    try:
        route = await provider.fetch_route(SAMPLE)
    except ProviderError as e:
        print(f"[ERROR] Route request failed: {e.message} (status {e.status_code})")
        return 1

    print(f"[OK] {len(route.path)} path points, {route.distance_meters / 1000:.2f} km, {route.duration_seconds / 60:.1f} min")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
