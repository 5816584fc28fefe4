import uvicorn

from ratelimit_provider.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``ratelimit-provider`` console script)."""

    uvicorn.run("ratelimit_provider.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
