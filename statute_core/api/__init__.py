from .fetcher import RetryableFetcher
from .openlaws import OpenLawsClient

__all__ = [
    "RetryableFetcher",
    "OpenLawsClient",
]
