"""Run the API with uvicorn: `python -m cookbook`."""

import uvicorn

from cookbook.config import settings


def main() -> None:
    uvicorn.run(
        "cookbook.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
