"""Create personalized client pages and serve them back."""

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..client_fields import extract_client_fields
from ..exceptions import ClientNotFound, ValidationError
from ..logo import is_shopify_gid, resolve_logo_source
from .client_store import ClientRecord, ClientStore
from .logo_resolver import ShopifyMediaResolver
from .page_storage import PageStorage
from .personalization_pipeline import PersonalizationPipeline

logger = logging.getLogger(__name__)

PROMPT_REQUIRED = "El prompt es requerido"


@dataclass
class CreatedClient:
    record: ClientRecord
    share_url: str
    used_llm: bool


class ClientPageService:
    """Ties the pipeline to the client store and page storage."""

    def __init__(
        self,
        template_path: Path,
        store: ClientStore,
        storage: PageStorage,
        pipeline: PersonalizationPipeline,
        media_resolver: Optional[ShopifyMediaResolver] = None,
    ) -> None:
        self.template_path = Path(template_path)
        self.store = store
        self.storage = storage
        self.pipeline = pipeline
        self.media_resolver = media_resolver

    def read_template(self) -> str:
        return self.template_path.read_text(encoding="utf-8")

    async def _resolve_logo(
        self,
        prompt: str,
        logo_url: Optional[str],
        logo_gid: Optional[str],
        shop: Optional[str],
    ) -> Optional[str]:
        # The admin UI sends a pasted GID in logoUrl as well
        gid = logo_gid or (logo_url if is_shopify_gid(logo_url) else None)
        gid_url = None
        if gid and self.media_resolver is not None:
            gid_url = await self.media_resolver.resolve(gid, shop)
        return resolve_logo_source(upload_url=logo_url, gid_url=gid_url, prompt=prompt)

    async def create_client(
        self,
        prompt: Optional[str],
        base_url: str,
        logo_url: Optional[str] = None,
        logo_gid: Optional[str] = None,
        shop: Optional[str] = None,
        request_id: str = "-",
    ) -> CreatedClient:
        """
        Personalize the template for a new client and persist the result.

        Raises:
            ValidationError: If the prompt is missing or blank
        """
        prompt_text = (prompt or "").strip()
        if not prompt_text:
            raise ValidationError(PROMPT_REQUIRED)

        client_id = str(uuid.uuid4())
        fields = extract_client_fields(prompt_text)
        resolved_logo = await self._resolve_logo(prompt_text, logo_url, logo_gid, shop)

        result = await self.pipeline.execute(
            self.read_template(),
            prompt=prompt_text,
            fields=fields,
            logo_url=resolved_logo,
            request_id=request_id,
        )

        stored = await self.storage.save_page(client_id, result.html)
        record = self.store.add(
            ClientRecord(
                id=client_id,
                prompt=prompt_text,
                url=stored.url,
                extracted_fields=fields,
                logo_url=resolved_logo,
            )
        )

        share_url = f"{base_url.rstrip('/')}{record.url}"
        logger.info(f"[{request_id}] Client created: {client_id}")
        logger.info(f"[{request_id}]   URL: {share_url}")
        logger.info(
            f"[{request_id}]   Prompt: {prompt_text[:200]}{'...' if len(prompt_text) > 200 else ''}"
        )
        return CreatedClient(record=record, share_url=share_url, used_llm=result.used_llm)

    def get_client(self, client_id: str) -> ClientRecord:
        record = self.store.get(client_id)
        if record is None:
            raise ClientNotFound("Cliente no encontrado")
        return record

    async def render_client_page(self, client_id: str, request_id: str = "-") -> str:
        """
        Return the stored page for *client_id*, regenerating it if the cache is gone.

        Raises:
            ClientNotFound: If the id is unknown
        """
        record = self.get_client(client_id)

        cached = await self.storage.load_page(client_id)
        if cached is not None:
            return cached

        logger.info(f"[{request_id}] No cached page for {client_id}, regenerating")
        result = await self.pipeline.execute(
            self.read_template(),
            prompt=record.prompt,
            fields=record.extracted_fields,
            logo_url=record.logo_url,
            request_id=request_id,
        )
        await self.storage.save_page(client_id, result.html)
        return result.html
