from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Inventory Ledger"
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Product listing
    DEFAULT_PAGE_SIZE: int = 10
    PAGE_SIZE_OPTIONS: list[int] = [10, 20, 50]

    # Products at or below this quantity show up as low stock on the dashboard
    LOW_STOCK_THRESHOLD: int = 5

    # Database backup copies
    BACKUP_DIR: str = "./backups"

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env"}


settings = Settings()
