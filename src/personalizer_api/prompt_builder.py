"""Build the numbered-line prompts sent to the completion API."""

import logging
from pathlib import Path
from typing import Sequence

from .client_fields import ClientFields
from .text_extractor import TextNode

logger = logging.getLogger(__name__)

_PROMPT_PATH = Path(__file__).parent / "prompts" / "personalize_texts.md"

_FALLBACK_SYSTEM_PROMPT = (
    "Personaliza textos de una página web para un cliente. Recibirás líneas con el "
    "formato 'N. [tipo] texto'. Devuelve exactamente una línea por entrada con el mismo "
    "número y el mismo tipo entre corchetes. Sin explicaciones ni markdown."
)

_FORMAT_RULES = """INSTRUCCIONES CRÍTICAS:
- Responde SOLO con la lista, una línea por texto, en el formato: N. [tipo] texto
- Mantén el MISMO número y el MISMO [tipo] de cada línea
- Devuelve exactamente {count} líneas
- NO añadas comentarios, explicaciones, títulos ni markdown
- NO incluyas HTML ni código"""

_FIELD_LABELS = (
    ("name", "Nombre", "Cliente"),
    ("company", "Empresa", ""),
    ("objectives", "Objetivos", ""),
    ("scope", "Alcance", ""),
    ("timeline", "Timeline", ""),
    ("team", "Equipo", ""),
    ("price", "Precio", ""),
)


def load_system_prompt(path: Path = _PROMPT_PATH) -> str:
    """Load the system instruction, falling back to a built-in one."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"System prompt not found at {path}, using built-in fallback")
        return _FALLBACK_SYSTEM_PROMPT


def _single_line(text: str) -> str:
    return " ".join(text.split())


def format_text_list(nodes: Sequence[TextNode]) -> str:
    """Serialize nodes as ``N. [kind] text`` lines, numbered from 1."""
    return "\n".join(
        f"{index}. [{node.tag_kind}] {_single_line(node.original_text)}"
        for index, node in enumerate(nodes, 1)
    )


def build_custom_prompt(nodes: Sequence[TextNode], instruction: str) -> str:
    """Embed the text list under a free-form instruction from the user."""
    return (
        f"{instruction.strip()}\n\n"
        f"{_FORMAT_RULES.format(count=len(nodes))}\n\n"
        f"TEXTOS A PERSONALIZAR:\n{format_text_list(nodes)}"
    )


def build_client_prompt(nodes: Sequence[TextNode], fields: ClientFields) -> str:
    """Embed the text list under a structured description of the client."""
    values = fields.to_dict()
    client_lines = "\n".join(
        f"{label}: {values.get(key) or default}" for key, label, default in _FIELD_LABELS
    )
    return (
        "Personaliza SOLO los textos de esta página para el cliente.\n\n"
        f"Datos del cliente:\n{client_lines}\n\n"
        f"{_FORMAT_RULES.format(count=len(nodes))}\n\n"
        f"TEXTOS A PERSONALIZAR:\n{format_text_list(nodes)}"
    )
