import uvicorn

from local_library.config import settings


def main() -> None:
    uvicorn.run(
        "local_library.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
