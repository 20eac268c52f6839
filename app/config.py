from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full SQLAlchemy URL, wins over the postgres_* fields when set
    sqlalchemy_url: Optional[str] = None

    env: str = "local"
    log_level: str = "INFO"

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_webhook_secret: str = ""
    currency: str = "INR"

    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = ""
    content_url_expires: int = 900

    storage_connect_timeout: int = 15
    storage_read_timeout: int = 60

    status_reconcile_enabled: bool = True
    status_reconcile_interval_seconds: int = 60

    checkout_statement_timeout_ms: int = 5000

    gift_access_requires_claim: bool = True

    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_url(self):
        if self.sqlalchemy_url:
            return self.sqlalchemy_url
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

settings = Settings()
