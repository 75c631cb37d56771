"""Print dispatcher for TILL.

Each dispatch runs the same sequence regardless of platform:

    STAGE -> SELECT_TARGET -> TRANSMIT -> SUCCESS | FAILURE -> CLEANUP

Platform differences live entirely in the PrintBackend. Calls share no
state, so concurrent dispatches proceed independently; jobs for the same
physical printer are serialized by the OS spooler. There are no retries.

Cleanup policy: a successful job's artifact is removed after the grace
delay; a failed job's artifact is kept for the operator when
keep_failed_artifacts is set, otherwise removed at once.
"""

import asyncio
import logging
from enum import Enum, auto
from typing import Optional

from till.config.settings import Settings, get_settings
from till.hardware.base import PrintBackend
from till.printing.errors import PrintError, PrintOutcome
from till.printing.staging import ArtifactStager, StagedArtifact

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    """Steps of a single dispatch."""

    STAGE = auto()
    SELECT_TARGET = auto()
    TRANSMIT = auto()
    SUCCESS = auto()
    FAILURE = auto()
    CLEANUP = auto()


class PrintDispatcher:
    """Stages, targets and transmits one receipt per call."""

    def __init__(
        self,
        backend: PrintBackend,
        stager: Optional[ArtifactStager] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._backend = backend
        self._stager = stager or ArtifactStager(self._settings.staging_dir)

    @property
    def backend(self) -> PrintBackend:
        return self._backend

    @property
    def stager(self) -> ArtifactStager:
        return self._stager

    async def dispatch(
        self,
        data: bytes,
        printer_name: Optional[str] = None,
        item_count: int = 0,
    ) -> PrintOutcome:
        """Send a rendered receipt to a printer.

        Args:
            data: Raw ESC/POS bytes
            printer_name: Explicit printer, or None for the platform default
            item_count: Reported back in the success message

        Returns:
            PrintOutcome describing success or the failure kind
        """
        requested = (printer_name or "").strip() or self._settings.printer.default_name or None
        artifact: Optional[StagedArtifact] = None
        target: Optional[str] = None
        outcome: Optional[PrintOutcome] = None
        state = DispatchState.STAGE

        try:
            artifact = await asyncio.to_thread(self._stager.stage, data)

            state = DispatchState.SELECT_TARGET
            target = await asyncio.to_thread(self._backend.resolve_target, requested)

            state = DispatchState.TRANSMIT
            logger.info(
                f"Sending {len(data)} bytes to {target or 'default printer'} via {self._backend.name}"
            )
            await asyncio.to_thread(self._backend.transmit, artifact, target)

            state = DispatchState.SUCCESS
            outcome = PrintOutcome.succeeded(item_count, target, artifact.path)
            logger.info(outcome.message)

        except PrintError as e:
            logger.error(f"Print failed during {state.name}: {e}")
            state = DispatchState.FAILURE
            outcome = PrintOutcome.failed(
                e,
                item_count=item_count,
                printer_name=target or requested,
                artifact_path=artifact.path if artifact else None,
            )

        finally:
            self._cleanup(artifact, state)

        return outcome

    def _cleanup(self, artifact: Optional[StagedArtifact], state: DispatchState) -> None:
        """CLEANUP step, run exactly once per dispatch.

        Args:
            state: SUCCESS, FAILURE, or the step an unexpected error escaped from
        """
        logger.debug(f"Dispatch {state.name} -> {DispatchState.CLEANUP.name}")
        if artifact is None:
            return

        if state is DispatchState.SUCCESS:
            self._stager.release(artifact, delay=self._settings.cleanup_delay)
        elif self._settings.keep_failed_artifacts:
            self._stager.retain(artifact)
        else:
            self._stager.release(artifact)
