from .config import settings
from .http_client import get_http_client
from .redis_client import get_redis_client
from .events import emit_event

__all__ = ["settings", "get_http_client", "get_redis_client", "emit_event"]
