"""
Tests for src/personalizer_api/html_splice.py

Coverage
--------
- splice_personalized  (round trip, scenario, reverse order, duplicates,
  content-search fallback, skipped nodes, escaping)
"""

from pathlib import Path

from personalizer_api.html_splice import splice_personalized
from personalizer_api.response_parser import PersonalizedNode, parse_response
from personalizer_api.text_extractor import TextNode, extract_text_nodes

_TEMPLATE = Path(__file__).resolve().parent.parent / "src" / "personalizer_api" / "templates" / "proposal.html"


def _same(nodes):
    return [PersonalizedNode(node=n, personalized_text=n.original_text) for n in nodes]


class TestSplicePersonalized:
    def test_scenario_hello_world(self):
        html = "<h1>Hello</h1><p>World</p>"
        nodes = extract_text_nodes(html)
        personalized = parse_response("1. [h1] Hola\n2. [p] Mundo", nodes)
        assert splice_personalized(html, personalized) == "<h1>Hola</h1><p>Mundo</p>"

    def test_unchanged_nodes_round_trip(self):
        html = _TEMPLATE.read_text(encoding="utf-8")
        nodes = extract_text_nodes(html)
        assert splice_personalized(html, _same(nodes)) == html

    def test_whitespace_around_text_preserved(self):
        html = "<p>\n  Hello\n</p>"
        [node] = extract_text_nodes(html)
        result = splice_personalized(html, [PersonalizedNode(node, "Hola")])
        assert result == "<p>\n  Hola\n</p>"

    def test_longer_replacements_do_not_shift_earlier_nodes(self):
        html = "<h1>A</h1><p>B</p><li>C</li>"
        nodes = extract_text_nodes(html)
        personalized = [
            PersonalizedNode(nodes[0], "A much longer heading"),
            PersonalizedNode(nodes[1], "Another long paragraph"),
            PersonalizedNode(nodes[2], "x"),
        ]
        assert splice_personalized(html, personalized) == (
            "<h1>A much longer heading</h1><p>Another long paragraph</p><li>x</li>"
        )

    def test_identical_texts_replaced_at_their_own_positions(self):
        html = "<p>Same</p><p>Same</p>"
        nodes = extract_text_nodes(html)
        personalized = [PersonalizedNode(nodes[0], "One"), PersonalizedNode(nodes[1], "Two")]
        assert splice_personalized(html, personalized) == "<p>One</p><p>Two</p>"

    def test_duplicate_nodes_for_one_element_replaced_once(self):
        html = '<h3 class="circuit-step-title">Meta</h3>'
        nodes = extract_text_nodes(html)
        personalized = [PersonalizedNode(nodes[0], "Goal"), PersonalizedNode(nodes[1], "Finish")]
        assert splice_personalized(html, personalized) == '<h3 class="circuit-step-title">Finish</h3>'

    def test_falls_back_to_content_search(self):
        stale = TextNode(original_text="World", tag_kind="p", document_offset=0, start=0, end=5)
        html = "<h1>Hi</h1><p>World</p>"
        assert splice_personalized(html, [PersonalizedNode(stale, "Mundo")]) == "<h1>Hi</h1><p>Mundo</p>"

    def test_missing_text_is_skipped(self):
        stale = TextNode(original_text="Gone", tag_kind="p", document_offset=0, start=0, end=4)
        html = "<p>World</p>"
        assert splice_personalized(html, [PersonalizedNode(stale, "Nuevo")]) == html

    def test_markup_in_personalized_text_escaped(self):
        html = "<p>World</p>"
        [node] = extract_text_nodes(html)
        result = splice_personalized(html, [PersonalizedNode(node, "<b>Mundo</b> & co")])
        assert result == "<p>&lt;b&gt;Mundo&lt;/b&gt; & co</p>"

    def test_empty_node_list(self):
        assert splice_personalized("<p>x</p>", []) == "<p>x</p>"
