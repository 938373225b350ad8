"""
Run the marketplace API with uvicorn.

Usage:
    python run.py                   # MongoDB store from RECORD_STORE / .env
    python run.py --store memory    # Throwaway in-process store
    python run.py --reload          # Development mode with auto-reload
"""
import argparse
import os

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Dropship Marketplace API server")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes (default: 1, ignored with --reload)"
    )
    parser.add_argument(
        "--store",
        choices=("mongo", "memory"),
        help="Override RECORD_STORE for this run"
    )
    return parser.parse_args()


def main():
    args = parse_args()
    if args.store:
        # Set before the settings module is first imported, here and in workers
        os.environ["RECORD_STORE"] = args.store

    from marketplace.config.settings import settings

    workers = 1 if args.reload else args.workers
    if settings.uses_memory_store and workers > 1:
        raise SystemExit("error: the in-memory record store is per process; use --store mongo with several workers")

    print(f"Starting Dropship Marketplace API on {args.host}:{args.port}")
    print(f"  Record store: {settings.record_store}")
    print(f"  Reload: {args.reload}  Workers: {workers}")

    uvicorn.run(
        "marketplace.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers
    )


if __name__ == "__main__":
    main()
