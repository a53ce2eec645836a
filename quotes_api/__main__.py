"""Run the API with uvicorn: `python -m quotes_api` or the `quotes-api` script."""

import uvicorn

from quotes_api.config import settings


def main() -> None:
    uvicorn.run(
        "quotes_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
