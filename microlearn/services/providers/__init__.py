"""Backend client implementations."""

from .api_client import ApiClient
from .http_completion_reporter import HttpCompletionReporter
from .http_content_provider import HttpContentProvider
from .http_heart_authority import HttpHeartAuthority

__all__ = ["ApiClient", "HttpContentProvider", "HttpHeartAuthority", "HttpCompletionReporter"]
