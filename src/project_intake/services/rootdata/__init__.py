"""Project-data provider client and record views."""

from .client import RootDataClient
from .models import CanonicalRecord, SearchHit, Website, is_http_url

__all__ = [
    "CanonicalRecord",
    "RootDataClient",
    "SearchHit",
    "Website",
    "is_http_url",
]
