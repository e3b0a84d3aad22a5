"""In-memory client records with a JSON snapshot on disk."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..client_fields import ClientFields, extract_client_fields

logger = logging.getLogger(__name__)


@dataclass
class ClientRecord:
    """Metadata and output location for one personalization request."""

    id: str
    prompt: str
    url: str
    extracted_fields: ClientFields = field(default_factory=ClientFields)
    logo_url: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "extractedFields": self.extracted_fields.to_dict(),
            "logoUrl": self.logo_url,
            "createdAt": self.created_at.isoformat(),
            "url": self.url,
        }

    def to_snapshot(self) -> dict:
        # Only these keys reach disk; fields and logo stay in memory
        return {
            "id": self.id,
            "prompt": self.prompt,
            "createdAt": self.created_at.isoformat(),
            "url": self.url,
        }

    @classmethod
    def from_snapshot(cls, data: dict) -> "ClientRecord":
        prompt = data.get("prompt", "")
        return cls(
            id=data["id"],
            prompt=prompt,
            url=data.get("url") or f"/client/{data['id']}",
            extracted_fields=extract_client_fields(prompt),
            created_at=_parse_timestamp(data.get("createdAt")),
        )


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    # JavaScript-style "Z" suffix is not accepted by older fromisoformat
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ClientStore:
    """
    Client records keyed by id, mirrored to a JSON list on every write.

    The snapshot only keeps id, prompt, createdAt and url; on load the
    extracted fields are derived again from the prompt.
    """

    def __init__(self, snapshot_path: Optional[Path] = None) -> None:
        self._clients: Dict[str, ClientRecord] = {}
        self._snapshot_path = Path(snapshot_path) if snapshot_path else None
        if self._snapshot_path is not None:
            self._load()

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._clients

    def add(self, record: ClientRecord) -> ClientRecord:
        self._clients[record.id] = record
        self._save()
        return record

    def get(self, client_id: str) -> Optional[ClientRecord]:
        return self._clients.get(client_id)

    def list(self) -> List[ClientRecord]:
        return sorted(self._clients.values(), key=lambda record: record.created_at)

    def _load(self) -> None:
        path = self._snapshot_path
        if not path.exists():
            return
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
            for entry in entries:
                record = ClientRecord.from_snapshot(entry)
                self._clients[record.id] = record
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load clients from {path}: {e}")
            return
        logger.info(f"Loaded {len(self._clients)} client(s) from {path}")

    def _save(self) -> None:
        path = self._snapshot_path
        if path is None:
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(
                [record.to_snapshot() for record in self._clients.values()],
                indent=2,
                ensure_ascii=False,
            )
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error(f"Failed to save clients to {path}: {e}")
