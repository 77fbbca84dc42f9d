#!/usr/bin/env python3
"""Helper script to check and create the .env file for Supabase configuration."""

from pathlib import Path
import os
import sys

TEMPLATE = """# Supabase Configuration (without it the API keeps data in memory only)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
OT_SUPABASE_URL=https://your-project-id.supabase.co
OT_SUPABASE_KEY=your-service-role-key-here

# API Configuration
OT_API_PREFIX=/api
# OT_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list

# Local settings (SLA thresholds JSON lives here)
OT_DATA_ROOT=./data
OT_TIMEZONE=America/Sao_Paulo

# Phase for statuses no rule recognizes: Unknown (default) or Cancelled
# OT_UNRECOGNIZED_PHASE=Unknown
"""


def _mask(value: str) -> str:
    return value[:20] + "..." + value[-10:] if len(value) > 30 else value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Supabase Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"✅ Created template .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        if line.startswith("OT_SUPABASE_KEY") and "=" in line:
            name, value = line.split("=", 1)
            print(f"{name}={_mask(value.strip())}")
        else:
            print(line)
    print("-" * 60)
    print()

    for name in ("OT_SUPABASE_URL", "OT_SUPABASE_KEY"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {_mask(value)}")
        else:
            print(f"❌ {name} not found in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from order_tracker.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    if settings.supabase_url and settings.supabase_key:
        print("✅ SUCCESS: Supabase is configured!")
    else:
        print("❌ ERROR: Supabase is NOT configured")
        print()
        print("Troubleshooting:")
        print("1. Make sure .env file exists in project root")
        print("2. Make sure variables start with OT_ prefix")
        print("3. Make sure there are no spaces around = sign")
        print("4. Restart backend after editing .env")


if __name__ == "__main__":
    main()
