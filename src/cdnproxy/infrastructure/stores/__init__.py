from cdnproxy.infrastructure.stores.s3_record_store import (
    S3RecordStore,
    S3StoreConfig,
    s3_store_from_settings,
)

__all__ = ["S3RecordStore", "S3StoreConfig", "s3_store_from_settings"]
