from cdnproxy.application.ports.record_store import RecordStore
from cdnproxy.application.ports.refresh_client import RefreshClient

__all__ = ["RecordStore", "RefreshClient"]
