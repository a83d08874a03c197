#!/usr/bin/env python3
"""Helper script to check the .env configuration and upstream connectivity."""

from pathlib import Path
import sys

TEMPLATE = """# Charger search provider: tomtom or google
EVROUTE_CHARGER_PROVIDER=tomtom
EVROUTE_TOMTOM_API_KEY=your-tomtom-key-here
# EVROUTE_GOOGLE_PLACES_API_KEY=your-google-places-key-here

# API Configuration
EVROUTE_API_PREFIX=/api
# EVROUTE_FRONTEND_ALLOWED_ORIGINS - Leave commented to use defaults
# JSON array: ["http://localhost:8081"] or comma-separated: http://localhost:8081,http://localhost:19006

# OSRM Routing (required for trip planning)
EVROUTE_OSRM_BASE_URL=http://localhost:5000

# Lower marker budget for low-end devices
# EVROUTE_CONSTRAINED_PLATFORM=true
"""


def _mask(value: str) -> str:
    if len(value) > 12:
        return value[:6] + "..." + value[-4:]
    return "***"


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("EV Route Planner Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        with open(env_file, "w", encoding="utf-8") as f:
            f.write(TEMPLATE)
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your provider API key and OSRM URL!")
        return 1

    print(f"✅ Found .env file at: {env_file}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    try:
        from evroute.config import settings
        from evroute.services.routing.osrm_client import check_health
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return 1

    ok = True
    print(f"Charger provider: {settings.charger_provider}")
    key = settings.tomtom_api_key if settings.charger_provider == "tomtom" else settings.google_places_api_key
    if key:
        print(f"✅ API key for {settings.charger_provider}: {_mask(key)}")
    else:
        print(f"❌ No API key configured for {settings.charger_provider}")
        ok = False

    if settings.osrm_base_url:
        print(f"✅ OSRM base URL: {settings.osrm_base_url} (profile {settings.osrm_profile})")
        if check_health():
            print("✅ OSRM answered a test route request")
        else:
            print("❌ OSRM health check failed")
            print("   Make sure the OSRM server is running and has data loaded")
            ok = False
    else:
        print("❌ EVROUTE_OSRM_BASE_URL is not configured")
        ok = False

    print()
    print("=" * 60)
    print("✅ SUCCESS: environment is configured" if ok else "❌ ERROR: environment is incomplete")
    print("=" * 60)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
