import logging
import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

# The URL of Open Badge Factory and its API.
OBF_DEFAULT_ADDRESS = "https://openbadgefactory.com/"
OBF_API_URL = OBF_DEFAULT_ADDRESS + "v1"

# The consumer id sent with every API request.
OBF_API_CONSUMER_ID = "Moodle"

# OBF API error codes.
OBF_API_CODE_CERT_ERROR = 495
OBF_API_CODE_NO_CERT = 496


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    SECRET_KEY: str = "dev-secret-key-change-me"
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///obf.db"
    APP_NAME: str = "local_obf"
    APP_VERSION: str = "1.0.0"
    ROOT_PATH: str = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    OBF_API_URL: str = OBF_API_URL
    OBF_CLIENT_ID: str = ""
    OBF_CERT_PATH: str = "pki/obf.pem"
    OBF_KEY_PATH: str = "pki/obf.key"
    OBF_TIMEOUT_SECONDS: float = 15.0

    # Shared secret the host sends with event and cron calls.
    HOST_API_TOKEN: str = "change-me"

    LOG_LEVEL: str = "INFO"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
