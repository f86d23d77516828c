import uvicorn

from .config.settings import IS_PRODUCTION, LOG_LEVEL, PORT


def main():
    uvicorn.run(
        "cryptolab.main:app",
        host="0.0.0.0",
        port=PORT,
        reload=not IS_PRODUCTION,
        log_level=LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
