from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./juris.db"

    # API
    API_TITLE: str = "Juris Sync API"
    API_VERSION: str = "0.3.0"
    CORS_ORIGINS: List[str] = ["*"]

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Provedores judiciais
    DEFAULT_COUNTRY: str = "CO"
    USE_MOCK_PROVIDER: bool = False
    JUDICIAL_HTTP_TIMEOUT: float = 30.0
    COLOMBIA_BASE_URL: str = "https://consultaprocesos.ramajudicial.gov.co:448/api/v2"
    COLOMBIA_MAX_ACTION_PAGES: int = 1

    # Varredura
    SWEEP_DELAY_SECONDS: float = 1.0
    ENABLE_JUDICIAL_SCHEDULER: bool = False
    JUDICIAL_TIMEZONE: str = "America/Bogota"
    JUDICIAL_SYNC_TIME: str = "00:00"  # HH:MM no fuso acima

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
