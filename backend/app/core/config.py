from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str
    SECRET_KEY: str = "dev-insecure-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # CORS origins, JSON list in the environment
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    LOG_LEVEL: str = "INFO"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Defaults applied when an inventory record is created for an item
    # that has none (sync, goods received)
    PRODUCT_DEFAULT_UNIT: str = "pcs"
    PRODUCT_DEFAULT_MINIMUM_STOCK: Decimal = Decimal("10")
    PRODUCT_DEFAULT_MAXIMUM_STOCK: Decimal | None = Decimal("1000")
    PRODUCT_DEFAULT_REORDER_POINT: Decimal = Decimal("20")

    RAW_MATERIAL_DEFAULT_UNIT: str = "kg"
    RAW_MATERIAL_DEFAULT_MINIMUM_STOCK: Decimal = Decimal("100")
    RAW_MATERIAL_DEFAULT_MAXIMUM_STOCK: Decimal | None = Decimal("10000")
    RAW_MATERIAL_DEFAULT_REORDER_POINT: Decimal = Decimal("200")


settings = Settings()  # type: ignore[call-arg]
