from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 2.0
    REDIS_HEALTH_CHECK_INTERVAL: int = 30
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Ticker universe is closed; initial_prices must cover every ticker
    tickers: List[str] = ["GOOG", "TSLA", "AMZN", "META", "NVDA"]
    initial_prices: Dict[str, float] = {
        "GOOG": 140.50,
        "TSLA": 242.80,
        "AMZN": 178.30,
        "META": 485.20,
        "NVDA": 495.60,
    }

    # Simulation settings
    tick_interval: float = 2.0
    max_step: float = 2.5
    price_floor: float = 10.0
    simulator_seed: Optional[int] = None

    # History / presentation
    history_size: int = 20
    history_time_format: str = "%H:%M:%S"

    min_password_length: int = 6

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
