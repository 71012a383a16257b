#!/usr/bin/env python3
"""
Storefront Backend Runner
=========================

Usage:
    python run_app.py                    # Development server with auto-reload
    python run_app.py --mode prod        # Production mode
    python run_app.py --mode seed        # Seed admin user and sample catalog
    python run_app.py --port 8001        # Custom port
    python run_app.py --host 127.0.0.1   # Custom host
"""

import argparse
import sys


def run_server(host: str, port: int, reload: bool, workers: int):
    """Run the FastAPI application"""
    import uvicorn

    print(f"Starting Storefront API on {host}:{port}")
    print(f"API Docs: http://{host}:{port}/api/docs")
    uvicorn.run(
        "storefront.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else workers,
        log_level="info"
    )


def run_seed():
    """Populate the database with sample data"""
    from storefront.seed import main as seed_main

    seed_main()
    print("Database seeded")


def main():
    parser = argparse.ArgumentParser(
        description="Storefront Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--mode",
        choices=["dev", "prod", "seed"],
        default="dev",
        help="Run mode (default: dev)"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Worker processes in prod mode (default: 4)"
    )

    args = parser.parse_args()

    if args.mode == "seed":
        run_seed()
    else:
        run_server(args.host, args.port, reload=args.mode == "dev", workers=args.workers)

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
