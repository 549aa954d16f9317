"""
Start a local development server for the bank portal API.

Usage:
    python serve.py
    python serve.py --port 9000 --no-reload
"""

import argparse

import uvicorn

from bankportal.config import settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the bank portal API locally")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    print("=" * 60)
    print("Starting Bank Portal Backend")
    print("=" * 60)
    print()
    print("API Endpoints:")
    print(f"   - Health Check:  GET  http://localhost:{args.port}/health")
    print(f"   - API Docs:           http://localhost:{args.port}/docs")
    print()
    print("Authentication:")
    print("   All endpoints (except /health) require:")
    print("   Authorization: Bearer <supabase access token>")
    print("   /admin/* additionally requires profiles.is_admin = true")
    print()
    print("=" * 60)

    uvicorn.run(
        "bankportal.main:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
