"""In-memory store for Shopify access tokens relayed by the Shopify app."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)


def normalize_shop(shop: str) -> str:
    """``https://My-Shop.myshopify.com/`` -> ``my-shop.myshopify.com``."""
    shop = (shop or "").strip().lower()
    for prefix in ("https://", "http://"):
        if shop.startswith(prefix):
            shop = shop[len(prefix):]
    return shop.rstrip("/")


def mask_token(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


@dataclass
class ShopifyToken:
    shop: str
    access_token: str
    scope: str = ""
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self, masked: bool = False) -> dict:
        return {
            "shop": self.shop,
            "accessToken": mask_token(self.access_token) if masked else self.access_token,
            "scope": self.scope,
            "receivedAt": self.received_at.isoformat(),
        }


class ShopifyTokenStore:
    """Keeps the latest access token per shop for the life of the process."""

    def __init__(self) -> None:
        self._tokens: Dict[str, ShopifyToken] = {}

    def save(self, shop: Optional[str], access_token: Optional[str], scope: Optional[str] = None) -> ShopifyToken:
        """
        Store the token for *shop*, replacing any previous one.

        Raises:
            ValidationError: If shop or access token is missing
        """
        shop = normalize_shop(shop or "")
        access_token = (access_token or "").strip()
        if not shop or not access_token:
            raise ValidationError("shop y accessToken son requeridos")

        token = ShopifyToken(shop=shop, access_token=access_token, scope=scope or "")
        self._tokens[shop] = token
        logger.info(f"Stored Shopify token for {shop} ({mask_token(access_token)})")
        return token

    def get(self, shop: str) -> Optional[ShopifyToken]:
        return self._tokens.get(normalize_shop(shop))

    def list(self) -> List[ShopifyToken]:
        return list(self._tokens.values())

    def first(self) -> Optional[ShopifyToken]:
        """The most recently stored token, used when a request names no shop."""
        if not self._tokens:
            return None
        return max(self._tokens.values(), key=lambda token: token.received_at)
