#!/usr/bin/env python3
"""Launch the dispatch API with uvicorn on $PORT after checking its configuration."""

import os
import subprocess
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def _port() -> int:
    raw = os.environ.get("PORT", "8000")
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: Invalid PORT value '{raw}', using default 8000", file=sys.stderr)
        return 8000


def _report_configuration() -> bool:
    """Print which backends are configured. False when the settings cannot load."""
    sys.path.insert(0, str(SRC_DIR))
    try:
        from dispatch.config import settings
    except Exception as e:
        print(f"❌ Could not load dispatch settings: {e}", file=sys.stderr)
        return False

    checks = {
        "Supabase (assignments, geocodes, routes)": bool(settings.supabase_url and settings.supabase_key),
        "Route optimizer key": bool(settings.optimizer_access_key),
        "Mapbox geocoding token": bool(settings.mapbox_access_token),
    }
    for name, ok in checks.items():
        print(f"{'✅' if ok else '⚠️ '} {name}: {'configured' if ok else 'not configured'}", file=sys.stderr)
    print(f"   Optimizer: {settings.optimizer_base_url} ({settings.optimizer_profile})", file=sys.stderr)
    print(f"   Depot: {settings.depot_address}", file=sys.stderr)
    return True


def main() -> int:
    port = _port()
    if not _report_configuration():
        return 1

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "dispatch.main:app",
        "--host",
        "0.0.0.0",
        "--port",
        str(port),
        "--proxy-headers",
        "--forwarded-allow-ips",
        "*",
    ]
    print(f"🚀 Starting dispatch API on port {port}...", file=sys.stderr)
    try:
        return subprocess.call(cmd, env=env)
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
