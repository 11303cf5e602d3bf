from __future__ import annotations
import os
from pydantic import BaseModel

# Fixed by the contest rules, not configurable per deployment
MAX_UPLOAD_BYTES = 25 * 1024 * 1024

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "entries-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Contest Entries")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", os.getenv("PORT", "8000")))
    cors_origins: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
    # Empty means "not configured": store-backed endpoints answer 503 instead of crashing the process
    database_url: str = os.getenv("DATABASE_URL", "")

    # Where pitch-deck bytes live: "s3" (MinIO / any S3 API) or "database"
    payload_backend: str = os.getenv("PAYLOAD_BACKEND", "s3")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_uploads: str = os.getenv("S3_BUCKET_UPLOADS", "contest-entries-dev")

    # Stripe configuration
    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    stripe_webhook_secret: str = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    payment_currency: str = os.getenv("PAYMENT_CURRENCY", "usd")

settings = Settings()
