from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from loguru import logger
from pydantic import ValidationError

from cdnproxy.domain.models import CachedRecord
from cdnproxy.infrastructure.settings import Settings

MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass(frozen=True)
class S3StoreConfig:
    bucket: str
    endpoint: str | None = None
    region: str = "auto"
    access_key: str | None = None
    secret_key: str | None = None
    prefix: str = "discord-cdn-proxy"
    force_path_style: bool = True


class S3RecordStore:
    """Durable record store on any S3 compatible bucket (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(self, cfg: S3StoreConfig, client=None) -> None:
        self.cfg = cfg
        if client is None:
            s3_cfg = Config(s3={"addressing_style": "path"} if cfg.force_path_style else {})
            client = boto3.client(
                "s3",
                endpoint_url=cfg.endpoint,
                aws_access_key_id=cfg.access_key,
                aws_secret_access_key=cfg.secret_key,
                region_name=cfg.region,
                config=s3_cfg,
            )
        self.client = client

    def object_key(self, key: str) -> str:
        safe_name = key.replace("/", "_")
        return f"{self.cfg.prefix}/{safe_name}" if self.cfg.prefix else safe_name

    async def get(self, key: str) -> Optional[CachedRecord]:
        return await asyncio.to_thread(self._get, key)

    async def put(self, key: str, record: CachedRecord, expires: datetime) -> None:
        await asyncio.to_thread(self._put, key, record, expires)

    def _get(self, key: str) -> Optional[CachedRecord]:
        try:
            resp = self.client.get_object(Bucket=self.cfg.bucket, Key=self.object_key(key))
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_CODES:
                return None
            raise

        body = resp["Body"].read()
        try:
            return CachedRecord.from_json(body)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable record for {key}: {e}")
            return None

    def _put(self, key: str, record: CachedRecord, expires: datetime) -> None:
        # Expires is the reclaim hint; pair it with a bucket lifecycle rule for actual deletion
        self.client.put_object(
            Bucket=self.cfg.bucket,
            Key=self.object_key(key),
            Body=record.to_json().encode("utf-8"),
            ContentType="application/json",
            Expires=expires,
        )


def s3_store_from_settings(settings: Settings) -> S3RecordStore | None:
    """Build the durable store, or None when no bucket is configured."""
    if not settings.durable_store_enabled:
        return None
    cfg = S3StoreConfig(
        bucket=settings.bucket_name,
        endpoint=settings.s3_endpoint,
        region=settings.s3_region,
        access_key=settings.s3_access_key.get_secret_value() if settings.s3_access_key else None,
        secret_key=settings.s3_secret_key.get_secret_value() if settings.s3_secret_key else None,
        prefix=settings.s3_prefix,
        force_path_style=settings.s3_force_path_style,
    )
    logger.info(f"Durable store enabled: bucket={cfg.bucket} prefix={cfg.prefix}")
    return S3RecordStore(cfg)
