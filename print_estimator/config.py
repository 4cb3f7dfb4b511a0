from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Print Job Estimator"
    COMPANY_NAME: str = ""
    BASE_CURRENCY: str = "INR"
    RATE_CARD_PATH: str = ""  # JSON rate card; empty = built-in defaults
    LOG_LEVEL: str = "INFO"
    MAX_QUANTITY_TIERS: int = 5

    class Config:
        env_file = ".env"


settings = Settings()
