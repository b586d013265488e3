"""
Run the CRA request workflow API with uvicorn.

Usage:
    python run.py
    python run.py --reload       # Development mode with auto-reload
    python run.py --port 8080    # Custom port

Host and port default to API_HOST / API_PORT from the environment (.env).
"""
import argparse
import uvicorn

from cra_workflow.config.settings import settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the CRA request workflow API server")
    parser.add_argument("--host", type=str, default=settings.api_host,
                        help=f"Host to bind to (default: {settings.api_host})")
    parser.add_argument("--port", type=int, default=settings.api_port,
                        help=f"Port to bind to (default: {settings.api_port})")
    parser.add_argument("--reload", action="store_true",
                        help="Enable auto-reload for development")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of worker processes (ignored with --reload)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    workers = 1 if args.reload else max(1, args.workers)

    print(f"Starting CRA request workflow API on {args.host}:{args.port} "
          f"(env={settings.environment}, db={settings.mongo_db}, workers={workers}, reload={args.reload})")

    uvicorn.run(
        "cra_workflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
