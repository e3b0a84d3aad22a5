"""Orchestrates the extract → prompt → complete → parse → splice pipeline."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from ..client_fields import ClientFields, apply_placeholder_fields, extract_client_fields
from ..config import Settings
from ..html_splice import splice_personalized
from ..llm import TextPersonalizer
from ..logo import inject_logo
from ..prompt_builder import build_client_prompt, build_custom_prompt, load_system_prompt
from ..response_parser import parse_response
from ..text_extractor import extract_text_nodes

logger = logging.getLogger(__name__)


@dataclass
class PersonalizationResult:
    """Output of the personalization pipeline."""

    html: str
    nodes_extracted: int
    nodes_personalized: int
    used_llm: bool
    model_used: Optional[str] = None
    fallback_reason: Optional[str] = None


def build_text_personalizer(settings: Settings) -> Optional[TextPersonalizer]:
    """Return a completion client, or None when no OpenAI key is configured."""
    if not settings.llm_enabled:
        return None
    return TextPersonalizer(
        api_key=settings.openai_api_key,
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.llm_timeout_seconds,
        max_attempts=settings.llm_max_attempts,
    )


class PersonalizationPipeline:
    """
    Rewrites the visible copy of a template for one client:

    1. Extract text nodes from the template.
    2. Build the numbered-line prompt (free-form or client-fields variant).
    3. Ask the completion API for the rewritten lines.
    4. Parse the lines, keeping the original text where a line is unusable.
    5. Splice the results into the template and inject the logo.

    When no completion client is configured or the call fails, the
    template's ``{{cliente.*}}`` placeholders are filled in instead.
    """

    def __init__(
        self,
        personalizer: Optional[TextPersonalizer] = None,
        system_prompt: Optional[str] = None,
    ) -> None:
        self._personalizer = personalizer
        self._system_prompt = system_prompt or load_system_prompt()

    @property
    def llm_enabled(self) -> bool:
        return self._personalizer is not None

    async def execute(
        self,
        template_html: str,
        prompt: Optional[str] = None,
        fields: Optional[ClientFields] = None,
        logo_url: Optional[str] = None,
        request_id: str = "-",
    ) -> PersonalizationResult:
        """
        Personalize *template_html* for the client described by *prompt*/*fields*.

        Args:
            template_html: Template to rewrite
            prompt: Free-form instruction; when empty the structured prompt is used
            fields: Client fields; derived from *prompt* when omitted
            logo_url: Resolved logo URL to inject, if any
            request_id: Correlation token used in log messages

        Returns:
            PersonalizationResult with the final HTML
        """
        start = time.time()
        fields = fields if fields is not None else extract_client_fields(prompt or "")
        result = await self._personalize(template_html, prompt, fields, request_id)
        result.html = inject_logo(result.html, logo_url)

        logger.info(
            f"[{request_id}] Personalization done in {time.time() - start:.3f}s "
            f"({result.nodes_personalized}/{result.nodes_extracted} text(s) changed, "
            f"llm={result.used_llm}, fallback={result.fallback_reason})"
        )
        return result

    async def _personalize(
        self,
        template_html: str,
        prompt: Optional[str],
        fields: ClientFields,
        request_id: str,
    ) -> PersonalizationResult:
        nodes = extract_text_nodes(template_html)
        if not nodes:
            logger.warning(f"[{request_id}] No text nodes found, returning template unchanged")
            return PersonalizationResult(
                html=template_html,
                nodes_extracted=0,
                nodes_personalized=0,
                used_llm=False,
                fallback_reason="no-text-nodes",
            )

        if self._personalizer is None:
            logger.warning(f"[{request_id}] OpenAI not configured, using placeholder substitution")
            return self._fallback(template_html, fields, len(nodes), "llm-disabled")

        if prompt and prompt.strip():
            user_prompt = build_custom_prompt(nodes, prompt)
        else:
            user_prompt = build_client_prompt(nodes, fields)

        try:
            loop = asyncio.get_running_loop()
            raw = await loop.run_in_executor(
                None,
                self._personalizer.complete,
                self._system_prompt,
                user_prompt,
                len(nodes),
            )
        except Exception as exc:
            logger.error(f"[{request_id}] Completion failed, using placeholder substitution: {exc}")
            return self._fallback(template_html, fields, len(nodes), "llm-error")

        personalized = parse_response(raw, nodes)
        # Placeholders outside the extracted texts (e.g. <title>) still need values
        html = apply_placeholder_fields(splice_personalized(template_html, personalized), fields)
        return PersonalizationResult(
            html=html,
            nodes_extracted=len(nodes),
            nodes_personalized=sum(1 for node in personalized if node.changed),
            used_llm=True,
            model_used=self._personalizer.model,
        )

    @staticmethod
    def _fallback(
        template_html: str, fields: ClientFields, node_count: int, reason: str
    ) -> PersonalizationResult:
        return PersonalizationResult(
            html=apply_placeholder_fields(template_html, fields),
            nodes_extracted=node_count,
            nodes_personalized=0,
            used_llm=False,
            fallback_reason=reason,
        )
