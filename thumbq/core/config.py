from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Load env from .env file
    model_config = {"env_file": ".env", "extra": "ignore"}

    # Search index
    ELASTIC_URL: str = "http://search.internal.dp.la:9200/dpla_alias"
    INDEX_TIMEOUT_SECONDS: float = 60.0

    # AWS
    REGION: str = "us-east-1"
    BUCKET: str = "dpla-thumbnails"
    SQS_QUEUE_URL: Optional[str] = None  # Unset disables cache population
    SIGNED_URL_EXPIRES_SECONDS: int = 60

    # Origin proxying
    ORIGIN_TIMEOUT_SECONDS: float = 10.0
    USER_AGENT: str = "DPLA Image Proxy"

    # Listener
    PORT: int = 3000

# Instantiate settings
settings = Settings()
