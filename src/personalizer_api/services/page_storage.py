"""Storage for rendered client pages and uploaded files."""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Dict, Literal, Optional

from .github_mirror import GitHubMirror, MirrorError

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

MirrorState = Literal["pending", "succeeded", "failed", "skipped"]


@dataclass
class StoredObject:
    """A file written to storage and the URL it is served from."""

    key: str
    local_path: Path
    url: str


@dataclass
class MirrorStatus:
    key: str
    state: MirrorState
    remote_url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "state": self.state,
            "remoteUrl": self.remote_url,
            "error": self.error,
        }


def _check_name(name: str) -> str:
    if not _SAFE_NAME_RE.match(name):
        raise ValueError(f"Invalid storage name: {name!r}")
    return name


def page_key(client_id: str) -> str:
    return f"clients/{_check_name(client_id)}.html"


def upload_key(filename: str) -> str:
    return f"uploads/{_check_name(filename)}"


async def _in_executor(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


class PageStorage(ABC):
    """
    One place rendered pages and uploads are written to and read from.

    Implementations treat the local copy as the source of truth: a save
    returns once the local write is done.
    """

    @abstractmethod
    async def save_page(self, client_id: str, html: str) -> StoredObject: ...

    @abstractmethod
    async def load_page(self, client_id: str) -> Optional[str]: ...

    @abstractmethod
    async def save_upload(self, filename: str, content: bytes) -> StoredObject: ...

    def mirror_status(self, key: str) -> Optional[MirrorStatus]:
        return None


class LocalPageStorage(PageStorage):
    """Pages under ``<public>/clients``, uploads under ``<public>/uploads``."""

    def __init__(self, public_dir: Path) -> None:
        self.public_dir = Path(public_dir)
        self.pages_dir = self.public_dir / "clients"
        self.uploads_dir = self.public_dir / "uploads"
        self.pages_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    async def save_page(self, client_id: str, html: str) -> StoredObject:
        key = page_key(client_id)
        path = self.public_dir / key
        await _in_executor(path.write_text, html, "utf-8")
        logger.info(f"Saved page {path} ({len(html)} chars)")
        return StoredObject(key=key, local_path=path, url=f"/client/{client_id}")

    async def load_page(self, client_id: str) -> Optional[str]:
        path = self.public_dir / page_key(client_id)
        if not path.exists():
            return None
        return await _in_executor(path.read_text, "utf-8")

    async def save_upload(self, filename: str, content: bytes) -> StoredObject:
        key = upload_key(filename)
        path = self.public_dir / key
        await _in_executor(path.write_bytes, content)
        logger.info(f"Saved upload {path} ({len(content)} bytes)")
        return StoredObject(key=key, local_path=path, url=f"/{key}")


class MirrorTracker:
    """Runs mirror commits as background tasks and records their outcome."""

    def __init__(self) -> None:
        self._statuses: Dict[str, MirrorStatus] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def schedule(self, key: str, commit: Awaitable[str]) -> asyncio.Task:
        self._statuses[key] = MirrorStatus(key=key, state="pending")
        task = asyncio.ensure_future(self._run(key, commit))
        self._tasks[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return task

    def _forget(self, key: str, task: asyncio.Task) -> None:
        # A newer commit may have been scheduled under the same key
        if self._tasks.get(key) is task:
            del self._tasks[key]

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def _run(self, key: str, commit: Awaitable[str]) -> MirrorStatus:
        try:
            remote_url = await commit
        except MirrorError as exc:
            logger.error(f"Mirror commit failed for {key}: {exc}")
            status = MirrorStatus(key=key, state="failed", error=str(exc))
        except Exception as exc:
            logger.exception(f"Unexpected mirror error for {key}")
            status = MirrorStatus(key=key, state="failed", error=str(exc))
        else:
            status = MirrorStatus(key=key, state="succeeded", remote_url=remote_url)
        self._statuses[key] = status
        return status

    def skip(self, key: str) -> MirrorStatus:
        status = MirrorStatus(key=key, state="skipped")
        self._statuses[key] = status
        return status

    def status(self, key: str) -> Optional[MirrorStatus]:
        return self._statuses.get(key)

    async def wait(self, key: str) -> Optional[MirrorStatus]:
        """Wait for the commit scheduled under *key*, if any, and return its status."""
        task = self._tasks.get(key)
        if task is not None:
            await task
        return self._statuses.get(key)


class MirroredPageStorage(PageStorage):
    """
    Local storage with a GitHub copy.

    Pages are mirrored in the background; uploads wait for the commit so the
    returned URL can point at GitHub, falling back to the local URL.
    """

    def __init__(self, local: LocalPageStorage, mirror: GitHubMirror, tracker: Optional[MirrorTracker] = None) -> None:
        self.local = local
        self.mirror = mirror
        self.tracker = tracker or MirrorTracker()

    async def save_page(self, client_id: str, html: str) -> StoredObject:
        stored = await self.local.save_page(client_id, html)
        self.tracker.schedule(
            stored.key,
            self.mirror.commit_file(stored.key, html.encode("utf-8"), f"Add client page {client_id}"),
        )
        return stored

    async def load_page(self, client_id: str) -> Optional[str]:
        return await self.local.load_page(client_id)

    async def save_upload(self, filename: str, content: bytes) -> StoredObject:
        stored = await self.local.save_upload(filename, content)
        self.tracker.schedule(
            stored.key, self.mirror.commit_file(stored.key, content, f"Upload {filename}")
        )
        status = await self.tracker.wait(stored.key)
        if status is not None and status.state == "succeeded":
            return StoredObject(key=stored.key, local_path=stored.local_path, url=status.remote_url)
        return stored

    def mirror_status(self, key: str) -> Optional[MirrorStatus]:
        return self.tracker.status(key)
