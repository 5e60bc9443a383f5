"""Run the relay: python -m lobbychess.api.main"""

import uvicorn

from lobbychess.api.app import create_app
from lobbychess.core.config import Settings
from lobbychess.core.logs import configure_logging


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
