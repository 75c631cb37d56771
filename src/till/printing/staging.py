"""Staged receipt artifacts.

Formatted receipts are written to a transient file before they are handed
to the OS print path. Some print commands read the file after the
submitting call returns, so removal can be deferred by a grace delay. The
delayed removals run as tracked asyncio tasks that `shutdown()` cancels,
removing the files immediately instead of orphaning them.
"""

import asyncio
import itertools
import logging
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from till.printing.errors import PrintError, PrintErrorKind

logger = logging.getLogger(__name__)

# Shared by every stager in the process so same-millisecond calls differ
_sequence = itertools.count(1)

MAX_NAME_ATTEMPTS = 5


@dataclass
class StagedArtifact:
    """Handle to a staged receipt file."""

    path: Path
    size: int
    released: bool = field(default=False)
    retained: bool = field(default=False)

    @property
    def settled(self) -> bool:
        """True once the artifact has been released or retained."""
        return self.released or self.retained


class ArtifactStager:
    """Creates and cleans up staged receipt files."""

    PREFIX = "receipt"
    SUFFIX = ".bin"

    def __init__(
        self,
        directory: Optional[Path] = None,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self._directory = Path(directory) if directory else Path.cwd()
        self._time_source = time_source
        self._pending: Dict[Path, Tuple[asyncio.Task[None], StagedArtifact]] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def pending(self) -> int:
        """Number of delayed removals still waiting."""
        return len(self._pending)

    def _artifact_name(self) -> str:
        millis = int(self._time_source() * 1000)
        return f"{self.PREFIX}_{millis}_{next(_sequence):06d}_{secrets.token_hex(3)}{self.SUFFIX}"

    def stage(self, data: bytes) -> StagedArtifact:
        """Write data to a new uniquely named file.

        Raises:
            PrintError: ARTIFACT_IO if the file cannot be written
        """
        for _ in range(MAX_NAME_ATTEMPTS):
            path = self._directory / self._artifact_name()
            try:
                # Exclusive create: an existing file is never overwritten
                with open(path, "xb") as f:
                    f.write(data)
            except FileExistsError:
                logger.warning(f"Artifact name clash on {path.name}, retrying")
                continue
            except OSError as e:
                self._discard_partial(path)
                raise PrintError(
                    PrintErrorKind.ARTIFACT_IO,
                    f"Failed to write temp file {path}: {e}",
                ) from e

            logger.debug(f"Staged {len(data)} bytes at {path}")
            return StagedArtifact(path=path, size=len(data))

        raise PrintError(
            PrintErrorKind.ARTIFACT_IO,
            f"Could not find a free artifact name in {self._directory}",
        )

    def release(self, artifact: StagedArtifact, delay: float = 0.0) -> None:
        """Remove a staged artifact, optionally after a grace delay.

        Releasing an already settled artifact does nothing.
        """
        if artifact.settled:
            return
        artifact.released = True

        if delay > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                task = loop.create_task(self._remove_later(artifact, delay))
                self._pending[artifact.path] = (task, artifact)
                task.add_done_callback(lambda _t, p=artifact.path: self._pending.pop(p, None))
                return

        self._remove(artifact)

    def retain(self, artifact: StagedArtifact) -> None:
        """Keep a staged artifact on disk for inspection."""
        if artifact.settled:
            return
        artifact.retained = True
        logger.warning(f"Keeping receipt artifact for inspection: {artifact.path}")

    async def _remove_later(self, artifact: StagedArtifact, delay: float) -> None:
        await asyncio.sleep(delay)
        self._remove(artifact)

    def _discard_partial(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to remove partial artifact {path}: {e}")

    def _remove(self, artifact: StagedArtifact) -> None:
        try:
            artifact.path.unlink(missing_ok=True)
            logger.debug(f"Removed artifact {artifact.path.name}")
        except OSError as e:
            logger.error(f"Failed to remove artifact {artifact.path}: {e}")

    async def shutdown(self) -> None:
        """Cancel delayed removals and remove their files immediately."""
        entries = list(self._pending.values())
        if not entries:
            return

        logger.info(f"Flushing {len(entries)} pending artifact removals")
        for task, _ in entries:
            task.cancel()
        await asyncio.gather(*(task for task, _ in entries), return_exceptions=True)

        # A task cancelled before it first ran never reaches its body
        for _, artifact in entries:
            self._remove(artifact)
        self._pending.clear()
