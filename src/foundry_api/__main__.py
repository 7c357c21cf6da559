"""Run the admin service: ``python -m foundry_api``."""

import uvicorn

from foundry_api.config import settings


def main() -> None:
    uvicorn.run(
        "foundry_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
