"""
Balance Scale — Entry point.

Serve the HTTP API with uvicorn.
"""

import uvicorn

from config import Settings


def main() -> None:
    settings = Settings()
    uvicorn.run("backend.app.main:app", host=settings.host, port=settings.port,
                log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
