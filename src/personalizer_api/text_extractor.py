"""Extract personalizable text nodes from an HTML template using regular expressions."""

import logging
import re
from dataclasses import dataclass
from typing import List, Literal, Sequence, Tuple

logger = logging.getLogger(__name__)

TagKind = Literal[
    "h1",
    "h2",
    "h3",
    "p",
    "li",
    "circuit-step-title",
    "circuit-step-description",
]

_FLAGS = re.IGNORECASE | re.DOTALL

# Blocks whose content is never user-visible copy
_CODE_BLOCK_RE = re.compile(
    r"<script\b[^>]*>.*?</script\s*>|<style\b[^>]*>.*?</style\s*>|<!--.*?-->", _FLAGS
)

_CODE_PREFIXES = ("function", "const ")


@dataclass(frozen=True)
class ExtractionRule:
    """An (open tag, close tag, kind) triple applied over the whole document."""

    kind: TagKind
    open_pattern: str
    close_pattern: str

    def compile(self) -> "re.Pattern[str]":
        return re.compile(
            f"{self.open_pattern}(?P<text>.*?){self.close_pattern}", _FLAGS
        )

    def compile_for_text(self, text: str) -> "re.Pattern[str]":
        """Pattern matching this rule's element whose inner text is exactly *text*."""
        return re.compile(
            f"{self.open_pattern}(?P<lead>\\s*)(?P<text>{re.escape(text)})\\s*{self.close_pattern}",
            _FLAGS,
        )


def _simple_rule(tag: TagKind) -> ExtractionRule:
    return ExtractionRule(kind=tag, open_pattern=f"<{tag}\\b[^>]*>", close_pattern=f"</{tag}\\s*>")


def _class_rule(css_class: TagKind) -> ExtractionRule:
    return ExtractionRule(
        kind=css_class,
        open_pattern=(
            "<(?P<tag>[a-z][a-z0-9]*)\\b[^>]*(?<![\\w-])class\\s*=\\s*[\"'][^\"']*"
            f"(?<![\\w-]){re.escape(css_class)}(?![\\w-])[^\"']*[\"'][^>]*>"
        ),
        close_pattern="</(?P=tag)\\s*>",
    )


DEFAULT_RULES: Tuple[ExtractionRule, ...] = (
    _simple_rule("h1"),
    _simple_rule("h2"),
    _simple_rule("h3"),
    _simple_rule("p"),
    _simple_rule("li"),
    _class_rule("circuit-step-title"),
    _class_rule("circuit-step-description"),
)

RULES_BY_KIND = {rule.kind: rule for rule in DEFAULT_RULES}


@dataclass(frozen=True)
class TextNode:
    """A unit of visible text tagged with the kind of element it came from."""

    original_text: str
    tag_kind: TagKind
    document_offset: int
    # Span of original_text inside the document it was extracted from
    start: int
    end: int


def is_code_like(text: str) -> bool:
    """Return True for content that should never be sent for rewriting."""
    if "<" in text:
        return True
    return text.startswith(_CODE_PREFIXES)


def _code_ranges(html: str) -> List[Tuple[int, int]]:
    return [match.span() for match in _CODE_BLOCK_RE.finditer(html)]


def _inside(offset: int, ranges: Sequence[Tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in ranges)


def extract_text_nodes(
    html: str, rules: Sequence[ExtractionRule] = DEFAULT_RULES
) -> List[TextNode]:
    """
    Extract text nodes from *html*, ordered by first appearance.

    Every rule is applied independently and the matches are unioned, so an
    element matching two rules (``<h3 class="circuit-step-title">``) yields
    two nodes with the same span. Ties on offset keep rule order.

    Args:
        html: Raw HTML document
        rules: Ordered extraction rules

    Returns:
        List of TextNode sorted by document offset
    """
    code_ranges = _code_ranges(html)
    found: List[Tuple[int, int, TextNode]] = []

    for rule_index, rule in enumerate(rules):
        for match in rule.compile().finditer(html):
            if _inside(match.start(), code_ranges):
                continue

            raw = match.group("text")
            text = raw.strip()
            if not text or is_code_like(text):
                continue

            start = match.start("text") + (len(raw) - len(raw.lstrip()))
            node = TextNode(
                original_text=text,
                tag_kind=rule.kind,
                document_offset=match.start(),
                start=start,
                end=start + len(text),
            )
            found.append((match.start(), rule_index, node))

    found.sort(key=lambda item: (item[0], item[1]))
    nodes = [node for _, _, node in found]
    logger.info(f"Extracted {len(nodes)} text node(s) from {len(html)} chars of HTML")
    return nodes
