"""Splice personalized text back into the original HTML."""

import logging
from typing import Sequence, Set

from .response_parser import PersonalizedNode
from .text_extractor import RULES_BY_KIND

logger = logging.getLogger(__name__)


def _escape_text(text: str) -> str:
    # Entities already present in the model output are kept as-is
    return text.replace("<", "&lt;").replace(">", "&gt;")


def splice_personalized(html: str, nodes: Sequence[PersonalizedNode]) -> str:
    """
    Replace each node's original text with its personalized text.

    Nodes are processed in reverse document order so the recorded spans of
    earlier nodes stay valid. A node whose span no longer holds its original
    text is located by content instead (first matching element of the same
    kind); if that fails too the node is skipped.

    Args:
        html: The HTML the nodes were extracted from
        nodes: Personalized nodes in extraction order

    Returns:
        HTML with personalized text substituted
    """
    replaced_starts: Set[int] = set()
    skipped = 0

    for personalized in reversed(nodes):
        if not personalized.changed:
            continue

        node = personalized.node
        if node.start in replaced_starts:
            # Same element matched by more than one rule
            continue

        new_text = _escape_text(personalized.personalized_text)

        if html[node.start:node.end] == node.original_text:
            html = html[: node.start] + new_text + html[node.end:]
            replaced_starts.add(node.start)
            continue

        rule = RULES_BY_KIND.get(node.tag_kind)
        match = rule.compile_for_text(node.original_text).search(html) if rule else None
        if match is None:
            skipped += 1
            logger.warning(
                f"Could not locate [{node.tag_kind}] text for splicing: "
                f"{node.original_text[:60]!r}"
            )
            continue

        html = html[: match.start("text")] + new_text + html[match.end("text"):]

    if skipped:
        logger.info(f"Skipped {skipped} node(s) during splicing")
    return html
