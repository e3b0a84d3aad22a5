"""Services package for the Personalizer API."""

from .client_pages import ClientPageService, CreatedClient
from .client_store import ClientRecord, ClientStore
from .page_storage import LocalPageStorage, MirroredPageStorage, MirrorTracker, PageStorage
from .personalization_pipeline import PersonalizationPipeline, PersonalizationResult
from .token_store import ShopifyTokenStore

__all__ = [
    "ClientPageService",
    "CreatedClient",
    "ClientRecord",
    "ClientStore",
    "LocalPageStorage",
    "MirroredPageStorage",
    "MirrorTracker",
    "PageStorage",
    "PersonalizationPipeline",
    "PersonalizationResult",
    "ShopifyTokenStore",
]
