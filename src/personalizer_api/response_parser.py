"""Parse numbered-line completions back into personalized text nodes."""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .text_extractor import TextNode

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^\s*(?P<number>\d+)\.\s*\[(?P<kind>[^\]]+)\]\s*(?P<text>.*?)\s*$")


@dataclass(frozen=True)
class PersonalizedNode:
    """A text node paired with the text that replaces it."""

    node: TextNode
    personalized_text: str

    @property
    def original_text(self) -> str:
        return self.node.original_text

    @property
    def tag_kind(self) -> str:
        return self.node.tag_kind

    @property
    def changed(self) -> bool:
        return self.personalized_text != self.node.original_text


def strip_code_fences(raw: str) -> str:
    """Remove markdown code fences wrapped around a completion."""
    raw = re.sub(r"^\s*```[a-zA-Z]*\s*\n?", "", raw)
    raw = re.sub(r"\n?```\s*$", "", raw)
    return raw.strip()


def parse_response(raw: str, nodes: Sequence[TextNode]) -> List[PersonalizedNode]:
    """
    Pair every node with its rewritten text.

    Line ``N. [kind] text`` is applied to the N-th node (1-based) when *kind*
    matches that node's kind. Nodes without an accepted line keep their
    original text.

    Args:
        raw: Raw completion text
        nodes: Nodes in the order they were listed in the prompt

    Returns:
        One PersonalizedNode per input node, same order
    """
    accepted: Dict[int, str] = {}
    for line in strip_code_fences(raw or "").splitlines():
        match = _LINE_RE.match(line)
        if not match:
            continue

        index = int(match.group("number")) - 1
        text = match.group("text")
        if index < 0 or index >= len(nodes) or index in accepted or not text:
            continue
        if match.group("kind").strip().lower() != nodes[index].tag_kind:
            logger.debug(
                f"Line {index + 1} kind [{match.group('kind')}] does not match "
                f"[{nodes[index].tag_kind}]"
            )
            continue
        accepted[index] = text

    result: List[PersonalizedNode] = []
    missing = []
    for index, node in enumerate(nodes):
        text = accepted.get(index)
        if text is None:
            missing.append(index + 1)
            text = node.original_text
        elif text == " ".join(node.original_text.split()):
            # Unchanged apart from the whitespace collapsed for the prompt
            text = node.original_text
        result.append(PersonalizedNode(node=node, personalized_text=text))

    if missing:
        logger.warning(
            f"Kept original text for {len(missing)}/{len(nodes)} line(s): {missing}"
        )
    return result
