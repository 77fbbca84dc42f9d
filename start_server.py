#!/usr/bin/env python3
"""Start the tracker API under uvicorn, honouring the PORT the platform assigns."""

import os
import subprocess
import sys

DEFAULT_PORT = 8000


def resolve_port() -> int:
    raw = os.environ.get("PORT", str(DEFAULT_PORT))
    try:
        return int(raw)
    except ValueError:
        print(f"Warning: Invalid PORT value '{raw}', using default {DEFAULT_PORT}", file=sys.stderr)
        return DEFAULT_PORT


def prepare_path() -> str:
    """Put ``src`` on PYTHONPATH so the uvicorn child resolves ``order_tracker``."""
    src_path = os.path.abspath("src")
    if not os.path.isdir(src_path):
        print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
        src_path = os.getcwd()

    current = os.environ.get("PYTHONPATH", "")
    os.environ["PYTHONPATH"] = f"{src_path}{os.pathsep}{current}" if current else src_path
    sys.path.insert(0, src_path)
    return src_path


def main() -> int:
    port = resolve_port()
    prepare_path()

    try:
        import order_tracker.main  # noqa: F401
    except Exception as exc:
        print(f"❌ Failed to import order_tracker.main ({type(exc).__name__}): {exc}", file=sys.stderr)
        import traceback

        traceback.print_exc(file=sys.stderr)
        return 1

    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "order_tracker.main:app",
        "--host",
        os.environ.get("HOST", "0.0.0.0"),
        "--port",
        str(port),
        "--proxy-headers",
        "--forwarded-allow-ips",
        "*",
    ]
    if "--reload" in sys.argv[1:]:
        cmd.append("--reload")

    print(f"🚀 Starting order tracker on port {port} (PYTHONPATH={os.environ['PYTHONPATH']})", file=sys.stderr)
    try:
        return subprocess.call(cmd)
    except KeyboardInterrupt:
        print("⚠️ Server interrupted by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
