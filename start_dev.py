"""Development launcher for the Filestore backend.

Usage:
    python start_dev.py [--port 8000] [--pin 1234]

Runs Uvicorn with --reload from backend/, preferring backend/.venv when it
exists. Press Ctrl+C to stop.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
BACKEND_DIR = ROOT_DIR / "backend"

BACKEND_VENV = BACKEND_DIR / (
    ".venv\\Scripts\\python.exe" if os.name == "nt" else ".venv/bin/python"
)


def log(level: str, msg: str) -> None:
    print(f"[{level}] {msg}")


def resolve_backend_python() -> str:
    if BACKEND_VENV.exists():
        return str(BACKEND_VENV)
    log("info", "No venv found — using system Python")
    return sys.executable


def check_dependencies(python: str) -> bool:
    """Verify critical packages are importable."""
    result = subprocess.run(
        [python, "-c", "import fastapi, uvicorn, sqlalchemy, aiosqlite"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        log("error", "Missing dependencies. Run:")
        log("error", f"  cd {ROOT_DIR} && pip install -e '.[dev]'")
        return False
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the Filestore dev server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--pin", help="Override the admin PIN for this run")
    args = parser.parse_args(argv)

    python = resolve_backend_python()
    log("info", f"Python: {python}")
    if not check_dependencies(python):
        return 1

    env = dict(os.environ)
    env.setdefault("FILESTORE_DEBUG", "true")
    env.setdefault("FILESTORE_LOG_LEVEL", "INFO")
    if args.pin:
        env["FILESTORE_ADMIN_PIN"] = args.pin

    cmd = [
        python, "-m", "uvicorn", "filestore.main:app",
        "--reload", "--host", args.host, "--port", str(args.port),
    ]
    log("start", " ".join(cmd))
    log("info", f"  API:     http://localhost:{args.port}/api/files")
    log("info", f"  Docs:    http://localhost:{args.port}/docs")
    try:
        return subprocess.run(cmd, cwd=BACKEND_DIR, env=env).returncode
    except KeyboardInterrupt:
        log("info", "Ctrl+C received, shutting down...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
