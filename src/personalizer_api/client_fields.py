"""Derive structured client fields from a free-text prompt."""

import html as html_lib
import re
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

# Accepted labels per field, Spanish first since that is what the admin UI sends
FIELD_LABELS: Dict[str, List[str]] = {
    "name": ["nombre", "cliente", "contacto", "name", "client"],
    "company": ["empresa", "compañía", "compania", "company"],
    "objectives": ["objetivos", "objetivo", "objectives", "goals"],
    "scope": ["alcance", "scope"],
    "timeline": ["timeline", "plazo", "plazos", "cronograma"],
    "team": ["equipo", "team"],
    "price": ["precio", "presupuesto", "price", "budget"],
}

# Template placeholder name for each field, as in {{cliente.nombre}}
PLACEHOLDER_NAMES: Dict[str, str] = {
    "name": "nombre",
    "company": "empresa",
    "objectives": "objetivos",
    "scope": "alcance",
    "timeline": "timeline",
    "team": "equipo",
    "price": "precio",
}

_LABEL_TO_FIELD = {
    label: field for field, labels in FIELD_LABELS.items() for label in labels
}

_LINE_RE = re.compile(
    r"^\s*(?:[-*•]\s*)?(?P<label>"
    + "|".join(re.escape(label) for label in sorted(_LABEL_TO_FIELD, key=len, reverse=True))
    + r")\s*[:=]\s*(?P<value>.+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)


@dataclass
class ClientFields:
    """Client details mentioned in a prompt. Every field is optional."""

    name: Optional[str] = None
    company: Optional[str] = None
    objectives: Optional[str] = None
    scope: Optional[str] = None
    timeline: Optional[str] = None
    team: Optional[str] = None
    price: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {key: value for key, value in asdict(self).items() if value}

    def is_empty(self) -> bool:
        return not self.to_dict()


def extract_client_fields(prompt: str) -> ClientFields:
    """Pick ``Label: value`` lines out of *prompt*; the first value per field wins."""
    values: Dict[str, str] = {}
    for match in _LINE_RE.finditer(prompt or ""):
        field = _LABEL_TO_FIELD[match.group("label").lower()]
        values.setdefault(field, match.group("value"))
    return ClientFields(**values)


def apply_placeholder_fields(html: str, fields: ClientFields) -> str:
    """
    Replace ``{{cliente.<field>}}`` placeholders with the client's values.

    This is the personalization used when no LLM is available or the
    completion call fails. Values come from the client's prompt and are
    HTML-escaped before substitution.
    """
    values = asdict(fields)
    for field, placeholder in PLACEHOLDER_NAMES.items():
        default = "Cliente" if field == "name" else ""
        value = html_lib.escape(values.get(field) or default)
        html = re.sub(
            r"\{\{\s*cliente\." + placeholder + r"\s*\}\}",
            lambda _match, value=value: value,
            html,
        )
    return html
