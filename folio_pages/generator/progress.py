"""Track build progress and mirror it to an optional JSON file.

External tools (editors, CI dashboards) can poll the progress file, which is
rewritten on every update as::

    {"total": 12, "processed": 3, "percent": 25,
     "current": {"id": "neptune", "step": "building page", "file": "...",
                 "language": "fr", "output": "..."}}
"""

from __future__ import annotations

import dataclasses as dc
import enum
import json
import logging
import threading
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class BuildStep(enum.StrEnum):
    """Stages a page goes through while being built."""

    LOAD_DATA = "loading data"
    BUILD_PAGE = "building page"
    TRANSLATE = "translating"
    WRITE = "writing"
    CHECK_LINKS = "checking links"


@dc.dataclass(slots=True)
class ProgressDetails:
    """The page currently being worked on."""

    id: str = ""
    step: str = ""
    file: str = ""
    language: str = ""
    output: str = ""


class ProgressTracker:
    """Count processed pages across worker threads."""

    def __init__(self, total: int = 0, progress_file: Path | None = None) -> None:
        self.total = total
        self.processed = 0
        self.current = ProgressDetails()
        self.progress_file = progress_file
        self._lock = threading.Lock()

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return min(100, round(self.processed * 100 / self.total))

    def status(
        self,
        step: BuildStep,
        *,
        file: str = "",
        language: str = "",
        output: str = "",
        object_id: str = "",
    ) -> None:
        """Record what is being worked on."""
        with self._lock:
            self.current = ProgressDetails(
                id=object_id,
                step=str(step),
                file=file,
                language=language,
                output=output,
            )
            logger.debug(
                "[%d/%d] %s %s %s", self.processed, self.total, step, file, language
            )
            self._write()

    def increment(self) -> None:
        """Count one more processed page."""
        with self._lock:
            self.processed += 1
            self._write()

    def snapshot(self) -> dict[str, typ.Any]:
        return {
            "total": self.total,
            "processed": self.processed,
            "percent": self.percent,
            "current": dc.asdict(self.current),
        }

    def _write(self) -> None:
        if self.progress_file is None:
            return
        self.progress_file.parent.mkdir(parents=True, exist_ok=True)
        self.progress_file.write_text(
            json.dumps(self.snapshot(), indent=2) + "\n", encoding="utf-8"
        )
