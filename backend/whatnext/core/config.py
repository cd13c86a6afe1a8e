from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL
from typing import List, Optional


class Settings(BaseSettings):
    APP_NAME: str = "whatnext"
    VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Local SQLite mirror + sync queue
    LOCAL_DATABASE_PATH: str = "./data/local.db"

    # Remote (authoritative) store. REMOTE_DATABASE_URL wins over the DB_* parts.
    REMOTE_DATABASE_URL: Optional[str] = None
    DB_HOST: Optional[str] = None
    DB_PORT: Optional[int] = None
    DB_DATABASE: Optional[str] = None
    DB_USERNAME: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    REMOTE_CONNECT_TIMEOUT: int = 3  # seconds, passed to the DB driver

    # Connectivity probe results are reused for this long
    PROBE_INTERVAL_SECONDS: float = 5.0

    DEFAULT_PRIORITY: float = 1.0

    # When False, a sync whose push phase had failures leaves the local mirror untouched
    SYNC_PULL_AFTER_FAILED_PUSH: bool = True

    CORS_ORIGINS: List[str] = ["*"]

    @property
    def remote_database_url(self) -> Optional[str]:
        if self.REMOTE_DATABASE_URL:
            return self.REMOTE_DATABASE_URL
        if not (self.DB_HOST and self.DB_DATABASE):
            return None
        url = URL.create(
            "mysql+pymysql",
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_DATABASE,
            query={"charset": "utf8mb4"},
        )
        return url.render_as_string(hide_password=False)

    class Config:
        env_file = ".env"


settings = Settings()


def get_settings() -> Settings:
    return settings
