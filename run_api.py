"""
API Server Runner

Command-line entry point that starts the notification triage API under
uvicorn with the selected environment.
"""

import argparse
import logging
import os
import sys

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("api_runner")


def parse_arguments(argv=None):
    """Parse command line arguments for the API server."""
    parser = argparse.ArgumentParser(description="Run the Notification Triage API server")

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )
    parser.add_argument(
        "--env",
        type=str,
        choices=["development", "testing", "production"],
        default="development",
        help="Environment to run in (default: development)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override LOG_LEVEL"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_arguments(argv)

    os.environ["ENVIRONMENT"] = args.env
    if args.log_level:
        os.environ["LOG_LEVEL"] = args.log_level
    if args.env == "production" and args.reload:
        logger.warning("Auto-reload is not recommended in production")

    logger.info(f"Starting API server on {args.host}:{args.port} ({args.env})")
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=(args.log_level or os.getenv("LOG_LEVEL", "INFO")).lower()
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
