"""Command line entry point.

Usage:
  python -m devpool_sync --once [--partners projects.json]
  python -m devpool_sync            # serve the API with the periodic scheduler
"""

import argparse
import sys


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="devpool-sync", description=__doc__.splitlines()[0])
    parser.add_argument("--once", action="store_true", help="run a single sync and exit")
    parser.add_argument("--partners", default=None, help="JSON file with partner repository URLs")
    args = parser.parse_args(argv)

    from devpool_sync.config import load_partner_urls, settings
    from devpool_sync.main import configure_logging

    configure_logging(settings.log_level)

    if args.once:
        from devpool_sync.models.base import SessionLocal, init_db
        from devpool_sync.scheduler import run_configured_sync

        partner_urls = load_partner_urls(args.partners or settings.partners_file)
        init_db()
        db = SessionLocal()
        try:
            result = run_configured_sync(db, partner_urls=partner_urls)
        finally:
            db.close()
        return 0 if result["status"] == "success" else 1

    import uvicorn

    uvicorn.run(
        "devpool_sync.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
