from pydantic_settings import BaseSettings

DEFAULT_SECRET_KEY = "YOUR_SECRET_KEY_HERE"


class Settings(BaseSettings):
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    DATA_DIR: str = "dota_cup/data"

    STEAM_API_KEY: str = ""
    OPENDOTA_API_KEY: str = ""
    OPENDOTA_BASE_URL: str = "https://api.opendota.com/api"

    FRONTEND_URL: str = "http://localhost:5173"
    BACKEND_URL: str = "http://localhost:8000"
    CORS_ORIGIN: str = "http://localhost:5173"

    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    MAX_TEAM_SIZE: int = 5
    TEAM_INVITE_TTL_DAYS: int = 7
    MAX_ELIGIBLE_RANK_TIER: int = 65  # Ancient V
    MIN_RANKED_MATCHES: int = 100

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def check_production_ready(self):
        """Raises if secrets are left at their defaults in production."""
        if not self.is_production:
            return
        if self.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set in production")
        if not self.STEAM_API_KEY:
            raise ValueError("STEAM_API_KEY must be set in production")


settings = Settings()
