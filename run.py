import argparse
import logging

import uvicorn

from app.core.config import settings
from app.db.init_db import init_db

def main():
    parser = argparse.ArgumentParser(description="Run the Hangout API server")
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (always on when DEBUG is set)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes; ignored when reloading",
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Apply Alembic migrations before serving",
    )
    parser.add_argument(
        "--log-level",
        default="debug" if settings.DEBUG else "info",
        choices=["critical", "error", "warning", "info", "debug"],
    )

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper())
    logger = logging.getLogger("run")

    if args.migrate:
        logger.info(f"Migrating {settings.DATABASE_URL.split('@')[-1]}")
        init_db()

    use_reload = args.reload or settings.DEBUG
    logger.info(
        f"Starting {settings.PROJECT_NAME} {settings.VERSION} ({settings.ENVIRONMENT}) "
        f"on http://{args.host}:{args.port}, reload={'on' if use_reload else 'off'}"
    )
    if settings.DEBUG:
        logger.info(f"Docs at http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=use_reload,
        workers=None if use_reload else args.workers,
        log_level=args.log_level,
    )

if __name__ == "__main__":
    main()
