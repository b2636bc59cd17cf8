from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGO: str = "HS256"

    DEFAULT_CURRENCY: str = "INR"
    FX_API_URL: str = "https://api.exchangerate-api.com/v4/latest/{base}"
    FX_TIMEOUT_SECONDS: float = 3.0
    FX_CACHE_TTL_SECONDS: int = 60 * 60  # 1 hour

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
