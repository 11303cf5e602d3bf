from __future__ import annotations
from dataclasses import dataclass
import structlog
from app.config import Settings
from app.db import Database
from app.services.payments import StripeGateway
from app.services.storage import DatabasePayloadStorage, PayloadStorage, S3PayloadStorage

log = structlog.get_logger()


@dataclass
class Services:
    """
    Long-lived collaborators, built once per process and shared by requests.
    Lives on app.state.services; tests swap in their own instance.
    """
    db: Database
    payloads: PayloadStorage
    gateway: StripeGateway
    currency: str = "usd"

    async def startup(self) -> None:
        if not self.db.configured:
            log.warning("database_not_configured")
        if not self.gateway.configured:
            log.warning("stripe_not_configured")
        try:
            await self.payloads.startup()
        except Exception as e:
            # Storage outages must not keep the health check from coming up
            log.error("payload_storage_startup_failed", error=str(e))

    async def shutdown(self) -> None:
        await self.db.dispose()


def build_services(settings: Settings) -> Services:
    db = Database(settings.database_url)
    if settings.payload_backend == "database":
        payloads: PayloadStorage = DatabasePayloadStorage(db)
    elif settings.payload_backend == "s3":
        payloads = S3PayloadStorage(
            settings.s3_endpoint, settings.s3_access_key, settings.s3_secret_key, settings.s3_bucket_uploads
        )
    else:
        raise ValueError(f"Unknown PAYLOAD_BACKEND: {settings.payload_backend!r} (expected 's3' or 'database')")
    gateway = StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)
    return Services(db=db, payloads=payloads, gateway=gateway, currency=settings.payment_currency)
