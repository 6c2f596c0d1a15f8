"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""
    
    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    
    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    
    # Integration configuration (JSON); built-in defaults when unset
    INTEGRATION_CONFIG_PATH: Optional[str] = None
    AUTO_START_SCHEDULER: bool = True
    
    # Source adapters
    SOURCE_TIMEOUT_SECONDS: float = 30.0
    
    # Frequency policy
    HOURLY_INTERVAL_SECONDS: float = 3600
    DAILY_INTERVAL_SECONDS: float = 86400
    WEEKLY_INTERVAL_SECONDS: float = 604800
    
    # ETL
    ETL_STEP_DELAY_SECONDS: float = 0.0
    
    # Notifications
    NOTIFICATION_SIMULATION_ENABLED: bool = False
    NOTIFICATION_SIMULATION_INTERVAL_SECONDS: float = 60
    NOTIFICATION_SIMULATION_PROBABILITY: float = 0.1
    WATCHLIST: str = ""
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def frequency_intervals(self) -> Dict[str, float]:
        """Seconds per schedule frequency"""
        return {
            "hourly": self.HOURLY_INTERVAL_SECONDS,
            "daily": self.DAILY_INTERVAL_SECONDS,
            "weekly": self.WEEKLY_INTERVAL_SECONDS,
        }

    def watchlist_ids(self) -> Optional[List[str]]:
        """Configured watchlist company ids, or None when no watchlist is set"""
        ids = [w.strip() for w in self.WATCHLIST.split(",") if w.strip()]
        return ids or None


settings = Settings()
