#!/usr/bin/env python3
"""Helper script to check and create the .env file for Supabase and Google Maps."""

from pathlib import Path
import os
import sys

SECRET_KEYS = ("TRUCKMATES_SUPABASE_KEY", "TRUCKMATES_GOOGLE_MAPS_API_KEY", "GOOGLE_MAPS_API_KEY")

TEMPLATE = """# Supabase Configuration (Required for route and stop storage)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
TRUCKMATES_SUPABASE_URL=https://your-project-id.supabase.co
TRUCKMATES_SUPABASE_KEY=your-service-role-key-here

# Google Maps (Optional - great-circle estimates are used without it)
TRUCKMATES_GOOGLE_MAPS_API_KEY=

# API Configuration
TRUCKMATES_API_PREFIX=/api
TRUCKMATES_LOG_LEVEL=INFO
# TRUCKMATES_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list
"""


def _mask(value: str) -> str:
    return value[:8] + "..." + value[-4:] if len(value) > 16 else "***"


def main() -> None:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("TruckMates Environment Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Edit it and add your Supabase credentials, then run this script again.")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        name, sep, value = line.partition("=")
        if sep and name.strip() in SECRET_KEYS and value.strip():
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print("-" * 60)
    print()

    for name in ("TRUCKMATES_SUPABASE_URL", "TRUCKMATES_SUPABASE_KEY", "TRUCKMATES_GOOGLE_MAPS_API_KEY"):
        print(f"{'✅' if os.getenv(name) else '➖'} {name} {'set' if os.getenv(name) else 'not set'} in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from truckmates.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        return

    supabase_ready = bool(settings.supabase_url and settings.supabase_key)
    print(f"{'✅' if supabase_ready else '❌'} Supabase {'configured' if supabase_ready else 'NOT configured'}")
    if settings.google_maps_api_key:
        print("✅ Google Maps API key configured")
    else:
        print("➖ Google Maps API key missing - distances fall back to great-circle estimates")


if __name__ == "__main__":
    main()
