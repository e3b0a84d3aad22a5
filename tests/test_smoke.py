"""Smoke tests for the Personalizer API package."""


def test_import_main():
    """Test that the main module can be imported."""
    from personalizer_api import main

    assert main.app is not None


def test_import_config():
    from personalizer_api import config

    assert config.get_settings is not None


def test_import_pipeline_modules():
    """Test that the pipeline stages can be imported."""
    from personalizer_api import html_splice, llm, prompt_builder, response_parser, text_extractor

    assert text_extractor.extract_text_nodes is not None
    assert prompt_builder.build_client_prompt is not None
    assert llm.TextPersonalizer is not None
    assert response_parser.parse_response is not None
    assert html_splice.splice_personalized is not None


def test_import_services():
    from personalizer_api.services import ClientPageService, PersonalizationPipeline

    assert ClientPageService is not None
    assert PersonalizationPipeline is not None


def test_bundled_template_has_text_nodes():
    from personalizer_api.config import Settings
    from personalizer_api.text_extractor import extract_text_nodes

    html = Settings().template_path.read_text(encoding="utf-8")
    assert len(extract_text_nodes(html)) > 10
