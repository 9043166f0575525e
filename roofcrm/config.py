from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./roofcrm.db"
    COMPANY_NAME: str = "NextDoor Exterior Solutions"
    COMPANY_EMAIL: str = ""
    COMPANY_PHONE: str = ""
    COMPANY_ADDRESS: str = ""

    # Auth: tokens are issued by the CRM's auth service, verified here with the shared secret
    JWT_SECRET: str = ""  # REQUIRED in production, fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15

    # Material order numbering
    ORDER_NUMBER_PREFIX: str = "MO"
    ORDER_NUMBER_MAX_RETRIES: int = 5

    # Optional JSON file merged over the built-in product catalog
    CATALOG_OVERRIDES_PATH: str = "data/product_catalog.json"

    # Cloudflare R2: optional mirror for exported CSV/PDF artifacts
    CLOUDFLARE_R2_ACCOUNT_ID: str = ""
    CLOUDFLARE_R2_ACCESS_KEY_ID: str = ""
    CLOUDFLARE_R2_SECRET_ACCESS_KEY: str = ""
    CLOUDFLARE_R2_BUCKET: str = "roofcrm-material-orders"

    class Config:
        env_file = ".env"


settings = Settings()
