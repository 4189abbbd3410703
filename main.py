"""
Admin Console Entry Point.

Bootstraps the dependency graph via constructor injection, resolves the
existing Supabase session, and reports which screen a surface would
show.  Every subsystem is wired in ``create_app``; no module-level
globals.

Usage::

    python main.py [path]
"""

from __future__ import annotations

import sys
import traceback

from admin_console.app import create_app
from admin_console.config import get_config
from admin_console.logger import StructuredLogger, get_logger


def main(argv: list[str]) -> int:
    """Wire dependencies, resolve the session and log the initial view."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Admin Console...")

    config = get_config()
    if not config.is_supabase_configured:
        logger.error("Supabase is not configured; set SUPABASE_URL and SUPABASE_ANON_KEY.")
        return 2

    console = create_app(config=config)
    try:
        state = console.start()
        path = argv[1] if len(argv) > 1 else "/"
        view = console.current_view(path)
        logger.info(
            "Initial view for %s: %s",
            path,
            view,
            extra={"event": "VIEW", "status": str(state.status)},
        )
    finally:
        console.stop()
        logger.info("Admin Console shut down.")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main(sys.argv))
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n{detail}")
        sys.exit(1)
