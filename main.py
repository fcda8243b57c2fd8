"""Entrypoint that serves the wardrobe catalog to a local front end."""

import uvicorn

from wardrobe_app.config import WardrobeConfig


def main() -> None:
    config = WardrobeConfig.from_env()
    uvicorn.run("server.api:create_app", factory=True, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
