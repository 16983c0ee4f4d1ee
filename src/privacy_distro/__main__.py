import uvicorn

from privacy_distro.config import Settings
from privacy_distro.logging_config import setup_logging


def main():
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run("privacy_distro.api.server:app", host="0.0.0.0", port=8000, lifespan="on", log_config=None)


if __name__ == "__main__":
    main()
