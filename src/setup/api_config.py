from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    APP_NAME: str = "dayreport"
    APP_VERSION: str = "0.1.0"
    HOST: str = "127.0.0.1"
    PORT: int = 8765
    PORT_FALLBACK_ATTEMPTS: int = 10
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: list[str] = ["*"]
    CORS_MAX_AGE_SEC: int = 86400
    WS_MAX_CONNECTIONS: int = 10
    WS_MAX_MESSAGE_BYTES: int = 10 * 1024 * 1024
    WS_PING_INTERVAL_SEC: float = 30.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_api_settings() -> ApiSettings:
    return ApiSettings()
