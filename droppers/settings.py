from pydantic import BaseModel
import os

class Settings(BaseModel):
    APP_ENV: str = os.getenv("APP_ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    DROPPERS_SECRET_KEY: str = os.getenv("DROPPERS_SECRET_KEY", "change-me")
    DROPPERS_ACCESS_MIN: int = int(os.getenv("DROPPERS_ACCESS_MIN", str(7 * 24 * 60)))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    DROPPERS_DATABASE_URL: str = os.getenv("DROPPERS_DATABASE_URL", "sqlite:///./droppers.sqlite3")
    DROPPERS_FRONTEND_ORIGIN: str = os.getenv("DROPPERS_FRONTEND_ORIGIN", "http://localhost:5173")
    DROPPERS_API_PREFIX: str = os.getenv("DROPPERS_API_PREFIX", "/api")

    # Business constants
    DROPPERS_COMMISSION_RATE: float = float(os.getenv("DROPPERS_COMMISSION_RATE", "0.2"))
    DROPPERS_MIN_ADDRESS_LENGTH: int = int(os.getenv("DROPPERS_MIN_ADDRESS_LENGTH", "10"))
    DROPPERS_MIN_CUSTOMER_NAME_LENGTH: int = int(os.getenv("DROPPERS_MIN_CUSTOMER_NAME_LENGTH", "2"))
    DROPPERS_MIN_ITEM_DESCRIPTION_LENGTH: int = int(os.getenv("DROPPERS_MIN_ITEM_DESCRIPTION_LENGTH", "5"))
    DROPPERS_MIN_PASSWORD_LENGTH: int = int(os.getenv("DROPPERS_MIN_PASSWORD_LENGTH", "6"))
    DROPPERS_BCRYPT_ROUNDS: int = int(os.getenv("DROPPERS_BCRYPT_ROUNDS", "12"))

    # Distance estimation: "random" or "geocode"
    DROPPERS_DISTANCE_ESTIMATOR: str = os.getenv("DROPPERS_DISTANCE_ESTIMATOR", "random")
    DROPPERS_MIN_DISTANCE_KM: float = float(os.getenv("DROPPERS_MIN_DISTANCE_KM", "1"))
    DROPPERS_MAX_DISTANCE_KM: float = float(os.getenv("DROPPERS_MAX_DISTANCE_KM", "21"))

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

settings = Settings()
