import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from abstractions.liveness_store import LivenessStore
from abstractions.work_registry import WorkRegistry
from contracts import probe_result
from contracts.probe_config import ProbeConfig
from contracts.probe_result import ProbeResult
from core.probe_decision import ProbeDecisionEngine
from core.quiet_state import QuietState
from core.stuck_job_detector import StuckJobDetector

PROBE_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


class ProbeServer:
    """
    HTTP liveness endpoint for a single monitored path.

    ``start()`` blocks until ``stop()`` is called from another thread. ``stop()``
    only flips uvicorn's exit flag, so it takes no lock, but it must still not be
    called from inside a signal handler: queue the request to a regular thread.
    """

    def __init__(
        self,
        config: ProbeConfig,
        liveness_store: LivenessStore,
        work_registry: WorkRegistry,
        logger: Optional[logging.Logger] = None,
        clock=time.time,
        environ=None,
    ):
        """
        Initialize the ProbeServer.

        Args:
            config (ProbeConfig): Bind address, monitored path and quiet timeout.
            liveness_store (LivenessStore): Source of the worker's freshness token.
            work_registry (WorkRegistry): Source of in-flight jobs for stuck-job detection.
            logger (Optional[logging.Logger]): Logger shared by the server components.
            clock (Callable[[], float]): Returns the current epoch time.
            environ (Optional[Mapping[str, str]]): Environment used to find the hostname.
        """
        self.config = config
        self.liveness_store = liveness_store
        self.work_registry = work_registry
        self.logger = logger or logging.getLogger(__name__)
        self.quiet_state = QuietState(clock=clock)
        self.decision_engine = ProbeDecisionEngine(
            liveness_store,
            StuckJobDetector(
                work_registry,
                hostname_env=config.hostname_env,
                clock=clock,
                environ=environ,
                logger=self.logger,
            ),
            logger=self.logger,
        )

        self.app = FastAPI(
            lifespan=self._lifespan,
            default_response_class=PlainTextResponse,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        self.app.add_api_route(
            "/{path:path}", self._dispatch, methods=PROBE_METHODS, include_in_schema=False
        )

        self._server = uvicorn.Server(
            uvicorn.Config(
                self.app,
                host=config.host,
                port=config.port,
                log_config=None,
                access_log=False,
                lifespan="on",
                timeout_graceful_shutdown=config.shutdown_timeout,
            )
        )

    @asynccontextmanager
    async def _lifespan(self, app):
        yield
        await self.liveness_store.close()
        await self.work_registry.close()

    async def _dispatch(self, request: Request) -> PlainTextResponse:
        result = await self.handle(request.url.path)
        return PlainTextResponse(result.body, status_code=result.status_code)

    async def handle(self, path: str) -> ProbeResult:
        """
        Answer a probe request for ``path``. Never raises.

        Returns:
            ProbeResult: Status code and body to send back.
        """
        if path != self.config.path:
            self.logger.warning(f"[LivenessProbe] Path '{path}' not found")
            return probe_result.NOT_FOUND

        try:
            return await self.decision_engine.decide(self.is_quiet())
        except Exception as e:
            self.logger.error(
                f"[LivenessProbe] {probe_result.INTERNAL_ERROR.body} looking for alive key. Error: {e}"
            )
            return probe_result.INTERNAL_ERROR

    def is_quiet(self) -> bool:
        return self.quiet_state.is_active(self.config.quiet_timeout)

    def quiet(self):
        """
        Enter quiet mode; the first call fixes the quiet timestamp.
        """
        if self.quiet_state.trigger():
            self.logger.info(
                f"[LivenessProbe] Entering quiet mode for {self.config.quiet_timeout}s"
            )

    @property
    def started(self) -> bool:
        return self._server.started

    def start(self):
        self.logger.info(
            f"[LivenessProbe] Starting healthcheck server on {self.config.host}:{self.config.port}"
        )
        self._server.run()
        self.logger.info("[LivenessProbe] Healthcheck server stopped")

    def stop(self):
        self.logger.info("[LivenessProbe] Stopping healthcheck server")
        self._server.should_exit = True
