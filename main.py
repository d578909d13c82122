import uvicorn

from reelscribe.core.config import get_settings
from reelscribe.core.logging import configure_logging


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run("reelscribe.api.main:app", host=settings.host, port=settings.port, log_config=None)
