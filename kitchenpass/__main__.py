"""Launch the kitchenpass API server."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn
from dotenv import load_dotenv

from .config import get_settings


def main(argv: list[str] | None = None) -> None:
    """Load settings, then serve the API with uvicorn."""

    parser = argparse.ArgumentParser(prog="kitchenpass")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args(argv)

    load_dotenv()  # .env values become settings overrides

    settings = get_settings()
    try:
        uvicorn.run(
            "kitchenpass.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=settings.log_level.lower(),
        )
    except ModuleNotFoundError as exc:
        missing = exc.name or str(exc)
        print(
            f"Missing dependency: {missing}. Install it with 'pip install {missing}'",
            file=sys.stderr,
        )
        raise SystemExit(1)


if __name__ == "__main__":
    main()
