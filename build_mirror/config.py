from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Build Mirror"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "dev"  # Environment: "dev", "staging", "prod"

    # Download
    DEFAULT_CONCURRENCY: int = 5  # Max requests in flight per run
    HTTP_TIMEOUT_SECONDS: float = 30.0
    BUILDS_DIR: str = "./builds"  # Root for relative target directories

    # Bamboo
    BAMBOO_BASE_URL: Optional[str] = None  # Defaults to https://<host>/rest/api/latest
    BAMBOO_USERNAME: Optional[str] = None
    BAMBOO_PASSWORD: Optional[str] = None
    BAMBOO_DEFAULT_REF_NAME: str = "master"

    # Drone
    DRONE_BASE_URL: str = "https://cloud.drone.io"
    DRONE_TOKEN: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
