from datetime import datetime

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql+psycopg://barnum_api@localhost:5432/cyberimpact_dwh"
    DB_SCHEMA: str = "analytics"      # search_path set on every new connection

    # Reference "now" for timespan tags (the warehouse is refreshed by batch)
    DEFAULT_END_DATE: datetime = datetime.fromisoformat("2022-05-01T11:00:00+00:00")
    PERCEVAL_END_DATE: datetime = datetime.fromisoformat("2022-02-01T11:00:00+00:00")
    SITE_WEB_END_DATE: datetime = datetime.fromisoformat("2022-05-15T11:00:00+00:00")

    MAX_RESULTS_DEFAULT: int = 10
    MAX_RESULTS_CAP: int = 50

    APP_OFFLINE: bool = False         # every request answers 503
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8080

    # Dashboard frontend
    API_BASE_URL: str = "http://127.0.0.1:8080/api"
    HTTP_TIMEOUT: int = 25            # seconds

settings = Settings()
