from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # DB
    DATABASE_URL: str = "sqlite:///./checkout.db"

    # Security / JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    LOG_LEVEL: str = "INFO"

    # Orders
    ORDER_REF_MAX_ATTEMPTS: int = 5

    # Receipt / bill policy
    DELIVERY_FEE: Decimal = Decimal("50.00")
    FREE_DELIVERY_THRESHOLD: Decimal = Decimal("0")  # 0 disables the waiver
    DELIVERY_ESTIMATE_DAYS: int = 5
    REWARD_EARN_PERCENT: Decimal = Decimal("1")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
