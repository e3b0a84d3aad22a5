"""Service for turning Shopify media GIDs into public image URLs."""

import logging
import time
from typing import Optional

import httpx

from ..logo import is_shopify_gid
from .token_store import ShopifyTokenStore

logger = logging.getLogger(__name__)

_MEDIA_QUERY = """
query MediaUrl($id: ID!) {
  node(id: $id) {
    ... on MediaImage { image { url } }
    ... on GenericFile { url }
  }
}
"""


class ShopifyMediaResolver:
    """Looks up the CDN URL of a Shopify file through the Admin GraphQL API."""

    _TIMEOUT_SECONDS = 15.0

    def __init__(self, token_store: ShopifyTokenStore, api_version: str = "2024-10") -> None:
        self._token_store = token_store
        self._api_version = api_version

    async def resolve(self, gid: str, shop: Optional[str] = None) -> Optional[str]:
        """
        Resolve *gid* to an image URL.

        Returns None (and logs why) when the GID is malformed, no token is
        stored for the shop, or the API call fails.
        """
        if not is_shopify_gid(gid):
            logger.warning(f"Not a Shopify GID: {gid!r}")
            return None

        token = self._token_store.get(shop) if shop else self._token_store.first()
        if token is None:
            logger.warning(f"No Shopify token available to resolve {gid} (shop={shop})")
            return None

        start = time.time()
        endpoint = f"https://{token.shop}/admin/api/{self._api_version}/graphql.json"
        try:
            async with httpx.AsyncClient(timeout=self._TIMEOUT_SECONDS) as client:
                response = await client.post(
                    endpoint,
                    json={"query": _MEDIA_QUERY, "variables": {"id": gid.strip()}},
                    headers={"X-Shopify-Access-Token": token.access_token},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                f"HTTP {exc.response.status_code} resolving {gid} "
                f"after {time.time() - start:.3f}s"
            )
            return None
        except httpx.RequestError as exc:
            logger.error(f"Request error resolving {gid} after {time.time() - start:.3f}s: {exc}")
            return None

        url = self._extract_url(payload)
        if url:
            logger.info(f"Resolved {gid} -> {url} in {time.time() - start:.3f}s")
        else:
            logger.warning(f"Shopify returned no URL for {gid}: {payload.get('errors')}")
        return url

    @staticmethod
    def _extract_url(payload: dict) -> Optional[str]:
        node = (payload.get("data") or {}).get("node") or {}
        image = node.get("image") or {}
        return image.get("url") or node.get("url")
