import logging

import uvicorn

from users_api.core.app_factory import create_app
from users_api.core.config import settings

logger = logging.getLogger(__name__)

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    logger.info("server.starting", extra={"port": settings.server.port})
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    run()
