#!/usr/bin/env python3
"""Helper script to check and create the .env file for the dispatch API."""

from pathlib import Path
import os
import sys

REQUIRED = ("DISPATCH_SUPABASE_URL", "DISPATCH_SUPABASE_KEY", "DISPATCH_OPTIMIZER_ACCESS_KEY")
OPTIONAL = ("DISPATCH_MAPBOX_ACCESS_TOKEN", "DISPATCH_DEPOT_ADDRESS", "DISPATCH_API_PREFIX")
SECRETS = ("DISPATCH_SUPABASE_KEY", "DISPATCH_OPTIMIZER_ACCESS_KEY", "DISPATCH_MAPBOX_ACCESS_TOKEN")

TEMPLATE = """# Supabase (required for assignments, geocodes and stored routes)
DISPATCH_SUPABASE_URL=https://your-project-id.supabase.co
DISPATCH_SUPABASE_KEY=your-service-role-key-here

# Route optimization (LocationIQ optimize endpoint)
DISPATCH_OPTIMIZER_ACCESS_KEY=your-locationiq-key-here
# DISPATCH_OPTIMIZER_BASE_URL=https://us1.locationiq.com/v1/optimize
# DISPATCH_OPTIMIZER_PROFILE=driving

# Geocoding (Mapbox places)
DISPATCH_MAPBOX_ACCESS_TOKEN=your-mapbox-token-here

# Depot every route starts from
# DISPATCH_DEPOT_ADDRESS=817 Brimley Rd, Scarborough, ON M1J 1C9
# DISPATCH_DEPOT_LONGITUDE=-79.25445232067732
# DISPATCH_DEPOT_LATITUDE=43.75300368666418

# API
DISPATCH_API_PREFIX=/api
# Comma-separated or JSON array: http://localhost:5173,http://127.0.0.1:5173
# DISPATCH_FRONTEND_ALLOWED_ORIGINS=
"""


def _mask(value: str) -> str:
    if len(value) > 20:
        return value[:8] + "..." + value[-4:]
    return "***"


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Dispatch Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your credentials, then run this script again.")
        return 1

    print(f"✅ Found .env file at: {env_file}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    try:
        from dispatch.config import Settings

        settings = Settings()
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return 1

    loaded = {
        "DISPATCH_SUPABASE_URL": settings.supabase_url,
        "DISPATCH_SUPABASE_KEY": settings.supabase_key,
        "DISPATCH_OPTIMIZER_ACCESS_KEY": settings.optimizer_access_key,
        "DISPATCH_MAPBOX_ACCESS_TOKEN": settings.mapbox_access_token,
        "DISPATCH_DEPOT_ADDRESS": settings.depot_address,
        "DISPATCH_API_PREFIX": settings.api_prefix,
    }

    missing = []
    for name in REQUIRED + OPTIONAL:
        value = loaded.get(name) or os.getenv(name)
        if value:
            shown = _mask(str(value)) if name in SECRETS else value
            print(f"✅ {name}: {shown}")
        elif name in REQUIRED:
            missing.append(name)
            print(f"❌ {name} is not set")
        else:
            print(f"➖ {name} not set (optional)")

    print()
    print("=" * 60)
    if missing:
        print("❌ ERROR: dispatch API is NOT fully configured")
        print("=" * 60)
        print("Variables must start with the DISPATCH_ prefix and have no spaces around '='.")
        return 1
    print("✅ SUCCESS: dispatch API is configured")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
