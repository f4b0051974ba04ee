import uvicorn

from newsletter.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "newsletter.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,  # structlog owns the root handler
    )


if __name__ == "__main__":
    main()
