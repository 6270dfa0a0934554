#!/usr/bin/env python3
"""Check the .env file and report which services the engine will use."""

import sys
from pathlib import Path

TEMPLATE = """# Supabase (optional - without it schedule items are kept in memory)
ITINERARY_SUPABASE_URL=https://your-project-id.supabase.co
ITINERARY_SUPABASE_KEY=your-service-role-key-here

# Routing provider: openrouteservice or osrm
ITINERARY_ROUTING_PROVIDER=openrouteservice
ITINERARY_ORS_API_KEY=
# ITINERARY_OSRM_BASE_URL=http://localhost:5000

# Debounce before a changed day route is resolved
ITINERARY_ROUTE_DEBOUNCE_MS=300

ITINERARY_API_PREFIX=/api
# ITINERARY_FRONTEND_ALLOWED_ORIGINS=["http://localhost:5173","http://127.0.0.1:5173"]
"""

SECRET_KEYS = ("ITINERARY_SUPABASE_KEY", "ITINERARY_ORS_API_KEY")


def _mask(value: str) -> str:
    return value[:6] + "..." + value[-4:] if len(value) > 12 else "***"


def main() -> int:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Itinerary engine environment check")
    print("=" * 60)

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env at {env_file}; edit it and run this script again.")
        return 1

    print(f"Found .env at {env_file}")
    for line in env_file.read_text(encoding="utf-8").splitlines():
        name, _, value = line.partition("=")
        if name.strip() in SECRET_KEYS and value.strip():
            print(f"  {name}={_mask(value.strip())}")
        else:
            print(f"  {line}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    from itinerary.config import settings

    print(f"Routing provider: {settings.routing_provider}")
    if settings.routing_provider == "osrm":
        routing_ready = bool(settings.osrm_base_url)
        print(f"  OSRM base URL: {settings.osrm_base_url or 'NOT SET'}")
    else:
        routing_ready = bool(settings.ors_api_key)
        print(f"  ORS API key: {'set' if routing_ready else 'NOT SET'}")
    if not routing_ready:
        print("  Day routes will be drawn as straight lines.")

    database_ready = bool(settings.supabase_url and settings.supabase_key)
    print(f"Supabase: {'configured' if database_ready else 'NOT configured (in-memory store)'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
