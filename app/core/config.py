from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Salon Reservations"
    API_PREFIX: str = "/api"
    
    # Server
    PORT: int = 5500
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = ["*"]

    # Real-time listeners (seconds)
    WS_SEND_TIMEOUT: float = 1.0
    NOTIFY_TIMEOUT: float = 2.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    
    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    RESERVATIONS_TABLE: str = "reservations"

    # Business rules (services, capacity, opening hours)
    SALON_CONFIG_PATH: str = "data/salon_config.json"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
