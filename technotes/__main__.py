"""
TechNotes Backend — Development Entry Point
=============================================

Usage:
    python -m technotes

Runs uvicorn against technotes.main:app on BACKEND_HOST:BACKEND_PORT.
Production deployments invoke uvicorn (or gunicorn with uvicorn workers) directly.
"""

import uvicorn

from technotes.config import settings


def main() -> None:
    uvicorn.run(
        "technotes.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
