from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from types import TracebackType
from uuid import uuid4

logger = logging.getLogger(__name__)


class ScratchWorkspace:
    """Request-scoped temporary directory for recording processing.

    Every file created through ``path_for`` lives inside a directory named
    after the meeting and a generated request id, so concurrent uploads never
    share paths. ``cleanup`` removes the whole directory and may be called
    any number of times.
    """

    def __init__(self, *, meeting_id: str, base_dir: str | None = None) -> None:
        self.request_id = uuid4().hex
        self.meeting_id = meeting_id
        self._base_dir = base_dir or None
        self._root: Path | None = None

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = Path(
                tempfile.mkdtemp(
                    prefix=f"recording-{_safe_token(self.meeting_id)}-{self.request_id}-",
                    dir=self._base_dir,
                ),
            )
        return self._root

    def path_for(self, name: str) -> Path:
        return self.root / _safe_filename(name)

    def cleanup(self) -> None:
        root = self._root
        if root is None:
            return
        shutil.rmtree(root, ignore_errors=True)
        if root.exists():
            logger.warning(
                "Scratch workspace could not be fully removed meeting_id=%s path=%s",
                self.meeting_id,
                root,
            )
            return
        self._root = None

    def __enter__(self) -> ScratchWorkspace:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()


def _safe_filename(name: str) -> str:
    base_name = Path(name or "").name
    cleaned = "".join(char if char.isalnum() or char in "._-" else "_" for char in base_name)
    cleaned = cleaned.lstrip(".")
    return cleaned or "upload"


def _safe_token(value: str) -> str:
    return "".join(char if char.isalnum() else "_" for char in str(value))[:32] or "meeting"
