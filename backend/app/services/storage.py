from __future__ import annotations
import io
import uuid
from abc import ABC, abstractmethod
import structlog
from minio import Minio
from minio.error import S3Error
from starlette.concurrency import run_in_threadpool
from app.db import Database
from app.errors import NotFound
from app.models.entry import EntryPayload
from app.services.documents import ext_for_mime

log = structlog.get_logger()


class PayloadStorage(ABC):
    """Where entry file bytes live. Entries only keep the returned reference."""

    @abstractmethod
    async def store(self, data: bytes, *, content_type: str, file_name: str | None = None) -> str: ...

    @abstractmethod
    async def retrieve(self, ref: str) -> bytes: ...

    @abstractmethod
    async def delete(self, ref: str) -> None: ...

    async def startup(self) -> None:
        pass

    async def check(self) -> bool:
        return True


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class S3PayloadStorage(PayloadStorage):
    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str):
        host, secure = _parse_endpoint(endpoint)
        self.bucket = bucket
        self._client = Minio(host, access_key=access_key, secret_key=secret_key, secure=secure)

    async def startup(self) -> None:
        # Ensure bucket exists (idempotent)
        try:
            if not await run_in_threadpool(self._client.bucket_exists, self.bucket):
                await run_in_threadpool(self._client.make_bucket, self.bucket)
        except S3Error as e:
            # Concurrent workers may race to create it
            log.warning("bucket_ensure_failed", bucket=self.bucket, code=e.code)

    async def store(self, data: bytes, *, content_type: str, file_name: str | None = None) -> str:
        key = f"entries/{uuid.uuid4().hex}.{ext_for_mime(content_type)}"
        await run_in_threadpool(
            self._client.put_object, self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type
        )
        return key

    def _get(self, key: str) -> bytes:
        response = self._client.get_object(self.bucket, key)
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    async def retrieve(self, ref: str) -> bytes:
        try:
            return await run_in_threadpool(self._get, ref)
        except S3Error as e:
            if e.code == "NoSuchKey":
                raise NotFound(f"Object not found: {ref}")
            raise

    async def delete(self, ref: str) -> None:
        await run_in_threadpool(self._client.remove_object, self.bucket, ref)

    async def check(self) -> bool:
        try:
            return await run_in_threadpool(self._client.bucket_exists, self.bucket)
        except Exception as e:
            log.warning("storage_check_failed", error=str(e))
            return False


class DatabasePayloadStorage(PayloadStorage):
    """Keeps bytes in their own table so entry queries never drag them along."""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _key(ref: str) -> uuid.UUID:
        try:
            return uuid.UUID(ref)
        except ValueError:
            raise NotFound(f"Object not found: {ref}")

    async def store(self, data: bytes, *, content_type: str, file_name: str | None = None) -> str:
        async with self.db.session() as session:
            row = EntryPayload(data=data, content_type=content_type, file_name=file_name, size=len(data))
            session.add(row)
            await session.commit()
            return str(row.id)

    async def retrieve(self, ref: str) -> bytes:
        async with self.db.session() as session:
            row = await session.get(EntryPayload, self._key(ref))
            if row is None:
                raise NotFound(f"Object not found: {ref}")
            return row.data

    async def delete(self, ref: str) -> None:
        async with self.db.session() as session:
            row = await session.get(EntryPayload, self._key(ref))
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def check(self) -> bool:
        return await self.db.ping()
