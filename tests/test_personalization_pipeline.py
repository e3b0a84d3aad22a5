"""
Tests for src/personalizer_api/services/personalization_pipeline.py

Coverage
--------
- PersonalizationPipeline.execute
  - LLM path: prompt variant, splicing, placeholder clean-up, logo injection
  - Fallbacks: no LLM, completion error, no text nodes
- build_text_personalizer  (disabled without an API key)
"""

import asyncio
from unittest.mock import MagicMock, patch

from personalizer_api.client_fields import ClientFields
from personalizer_api.config import Settings
from personalizer_api.services.personalization_pipeline import (
    PersonalizationPipeline,
    build_text_personalizer,
)

_TEMPLATE = (
    "<html><head><title>Para {{cliente.empresa}}</title></head><body>"
    '<img id="logo-img" src="" style="display: none">'
    "<h1>Hello</h1><p>World</p>"
    "</body></html>"
)


def _run(coro):
    return asyncio.run(coro)


def _personalizer(response="1. [h1] Hola\n2. [p] Mundo", error=None):
    personalizer = MagicMock()
    personalizer.model = "gpt-4o-mini"
    if error is not None:
        personalizer.complete.side_effect = error
    else:
        personalizer.complete.return_value = response
    return personalizer


class TestPipelineWithLLM:
    def test_texts_rewritten(self):
        pipeline = PersonalizationPipeline(_personalizer(), system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="Empresa: Acme"))

        assert "<h1>Hola</h1><p>Mundo</p>" in result.html
        assert result.used_llm is True
        assert result.nodes_extracted == 2
        assert result.nodes_personalized == 2
        assert result.model_used == "gpt-4o-mini"
        assert result.fallback_reason is None

    def test_custom_prompt_sent(self):
        personalizer = _personalizer()
        pipeline = PersonalizationPipeline(personalizer, system_prompt="SYS")
        _run(pipeline.execute(_TEMPLATE, prompt="Cliente: taller de motos"))

        system_prompt, user_prompt, text_count = personalizer.complete.call_args.args
        assert system_prompt == "SYS"
        assert user_prompt.startswith("Cliente: taller de motos")
        assert "1. [h1] Hello\n2. [p] World" in user_prompt
        assert text_count == 2

    def test_structured_prompt_without_free_text(self):
        personalizer = _personalizer()
        pipeline = PersonalizationPipeline(personalizer, system_prompt="SYS")
        _run(pipeline.execute(_TEMPLATE, prompt=None, fields=ClientFields(name="Ana")))

        user_prompt = personalizer.complete.call_args.args[1]
        assert "Datos del cliente:" in user_prompt
        assert "Nombre: Ana" in user_prompt

    def test_partial_response_keeps_original(self):
        pipeline = PersonalizationPipeline(_personalizer("1. [h1] Hola"), system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="x"))
        assert "<h1>Hola</h1><p>World</p>" in result.html
        assert result.nodes_personalized == 1

    def test_leftover_placeholders_filled(self):
        pipeline = PersonalizationPipeline(_personalizer(), system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="Empresa: Acme"))
        assert "<title>Para Acme</title>" in result.html

    def test_logo_injected(self):
        pipeline = PersonalizationPipeline(_personalizer(), system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="x", logo_url="https://x.test/l.png"))
        assert '<img id="logo-img" src="https://x.test/l.png" style="display: block">' in result.html


class TestPipelineFallbacks:
    def test_no_llm_uses_placeholders(self):
        pipeline = PersonalizationPipeline(None, system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="Empresa: Acme"))
        assert "<title>Para Acme</title>" in result.html
        assert "<h1>Hello</h1><p>World</p>" in result.html
        assert result.used_llm is False
        assert result.fallback_reason == "llm-disabled"

    def test_completion_error_uses_placeholders(self):
        pipeline = PersonalizationPipeline(_personalizer(error=RuntimeError("timeout")), system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="Empresa: Acme"))
        assert result.used_llm is False
        assert result.fallback_reason == "llm-error"
        assert "<title>Para Acme</title>" in result.html

    def test_no_text_nodes_returns_template(self):
        personalizer = _personalizer()
        pipeline = PersonalizationPipeline(personalizer, system_prompt="SYS")
        html = "<div><span>{{cliente.nombre}}</span></div>"
        result = _run(pipeline.execute(html, prompt="Nombre: Ana"))
        assert result.html == html
        assert result.fallback_reason == "no-text-nodes"
        personalizer.complete.assert_not_called()

    def test_fallback_still_injects_logo(self):
        pipeline = PersonalizationPipeline(None, system_prompt="SYS")
        result = _run(pipeline.execute(_TEMPLATE, prompt="x", logo_url="https://x.test/l.png"))
        assert 'src="https://x.test/l.png"' in result.html


class TestBuildTextPersonalizer:
    def test_disabled_without_key(self):
        assert build_text_personalizer(Settings(openai_api_key="")) is None

    @patch("personalizer_api.llm.OpenAI")
    def test_built_from_settings(self, _mock_openai):
        personalizer = build_text_personalizer(
            Settings(openai_api_key="sk-test", model="gpt-4o", temperature=0.1, llm_max_attempts=2)
        )
        assert personalizer.model == "gpt-4o"
        assert personalizer.temperature == 0.1
        assert personalizer.max_attempts == 2
