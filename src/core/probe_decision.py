import logging
from typing import Optional

from abstractions.liveness_store import LivenessStore
from contracts import probe_result
from contracts.probe_result import ProbeResult
from core.stuck_job_detector import StuckJobDetector


class ProbeDecisionEngine:
    """
    Combines quiet state, stuck-job detection and the liveness token into a probe result.

    Checks run in priority order and stop at the first match, so collaborators
    behind a lower-priority check are not consulted.
    """

    def __init__(
        self,
        liveness_store: LivenessStore,
        stuck_job_detector: StuckJobDetector,
        logger: Optional[logging.Logger] = None,
    ):
        self.liveness_store = liveness_store
        self.stuck_job_detector = stuck_job_detector
        self.logger = logger or logging.getLogger(__name__)

    async def decide(self, quiet: bool) -> ProbeResult:
        if quiet:
            self.logger.debug("[LivenessProbe] Server in quiet mode, skipping alive key lookup!")
            return probe_result.SHUTTING_DOWN

        if await self.stuck_job_detector.is_processing_slowly():
            self.logger.debug("[LivenessProbe] Slow job processing, skipping alive key lookup!")
            return probe_result.SERVICE_UNAVAILABLE

        if await self.liveness_store.is_alive():
            self.logger.debug("[LivenessProbe] Found alive key!")
            return probe_result.ALIVE

        self.logger.error(f"[LivenessProbe] {probe_result.ALIVE_KEY_MISSING.body}")
        return probe_result.ALIVE_KEY_MISSING
