"""
Tests for src/personalizer_api/prompt_builder.py

Coverage
--------
- format_text_list  (line protocol)
- build_custom_prompt / build_client_prompt
- load_system_prompt  (bundled file + fallback)
"""

from pathlib import Path

from personalizer_api.client_fields import ClientFields
from personalizer_api.prompt_builder import (
    build_client_prompt,
    build_custom_prompt,
    format_text_list,
    load_system_prompt,
)
from personalizer_api.text_extractor import extract_text_nodes

_HTML = "<h1>Hello</h1><p>World\n   again</p>"


class TestFormatTextList:
    def test_numbered_kind_lines(self):
        assert format_text_list(extract_text_nodes(_HTML)) == "1. [h1] Hello\n2. [p] World again"

    def test_empty(self):
        assert format_text_list([]) == ""


class TestBuildPrompts:
    def test_custom_prompt_contains_instruction_and_list(self):
        prompt = build_custom_prompt(extract_text_nodes(_HTML), "  Cliente: taller de motos  ")
        assert prompt.startswith("Cliente: taller de motos")
        assert "1. [h1] Hello" in prompt
        assert "2. [p] World again" in prompt
        assert "Devuelve exactamente 2 líneas" in prompt
        assert "N. [tipo] texto" in prompt

    def test_client_prompt_lists_fields(self):
        fields = ClientFields(name="Ana", company="Acme", price="10k")
        prompt = build_client_prompt(extract_text_nodes(_HTML), fields)
        assert "Nombre: Ana" in prompt
        assert "Empresa: Acme" in prompt
        assert "Precio: 10k" in prompt
        assert "Objetivos: " in prompt
        assert "1. [h1] Hello" in prompt

    def test_client_prompt_default_name(self):
        prompt = build_client_prompt(extract_text_nodes(_HTML), ClientFields())
        assert "Nombre: Cliente" in prompt


class TestLoadSystemPrompt:
    def test_bundled_prompt(self):
        prompt = load_system_prompt()
        assert "N. [tipo] texto" in prompt

    def test_fallback_when_missing(self, tmp_path: Path):
        prompt = load_system_prompt(tmp_path / "missing.md")
        assert "N. [tipo] texto" in prompt
