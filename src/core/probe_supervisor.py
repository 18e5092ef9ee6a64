import atexit
import logging
import multiprocessing
import os
import queue
import signal
import sys
import threading
from typing import Callable, Optional

from contracts.probe_config import ProbeConfig
from core.probe_server import ProbeServer
from core.registry_factory import RegistryFactory

logger = logging.getLogger(__name__)

QUIET = "quiet"
SHUTDOWN = "shutdown"


def build_probe_server(config: ProbeConfig) -> ProbeServer:
    """
    Default server factory: collaborators come from the configured store type.
    """
    return ProbeServer(
        config,
        liveness_store=RegistryFactory.create_liveness_store(),
        work_registry=RegistryFactory.create_work_registry(),
        logger=logging.getLogger("liveness_probe"),
    )


class SignalEventPump:
    """
    Turns OS signals into events consumed outside of signal context.

    Signal handlers only put an event on a ``queue.SimpleQueue``, which is safe
    to call from a handler. ``run()`` applies quiet and shutdown to the server
    from the calling thread.
    """

    def __init__(self, config: ProbeConfig, poll_interval: float = 1.0):
        self.config = config
        self.poll_interval = poll_interval
        # uvicorn gets shutdown_timeout for in-flight requests; allow a little more to return
        self.join_timeout = config.shutdown_timeout + 5.0
        self.events = queue.SimpleQueue()

    def install(self):
        signal.signal(self.config.shutdown_signum, self._on_signal)
        signal.signal(self.config.quiet_signum, self._on_signal)
        # Ctrl-C reaches the whole process group; the parent decides what to do with it
        if self.config.shutdown_signum != signal.SIGINT:
            signal.signal(signal.SIGINT, signal.SIG_IGN)

    def _on_signal(self, signum, frame):
        self.events.put(SHUTDOWN if signum == self.config.shutdown_signum else QUIET)

    def run(self, server: ProbeServer) -> int:
        """
        Serve on a dedicated thread until a shutdown event arrives.

        Returns:
            int: 0 after a requested shutdown, 1 if the server thread died on its own.
        """
        thread = threading.Thread(target=server.start, name="probe-server", daemon=True)
        thread.start()
        while True:
            try:
                event = self.events.get(timeout=self.poll_interval)
            except queue.Empty:
                if not thread.is_alive():
                    logger.error("[LivenessProbe] Healthcheck server exited unexpectedly")
                    return 1
                continue

            if event == QUIET:
                server.quiet()
            elif event == SHUTDOWN:
                server.stop()
                thread.join(self.join_timeout)
                if thread.is_alive():
                    logger.warning(
                        f"[LivenessProbe] Healthcheck server still running after {self.join_timeout}s, exiting anyway"
                    )
                return 0


def run_probe_server(config: ProbeConfig, server_factory: Callable[[ProbeConfig], ProbeServer]):
    """
    Entry point of the probe child process.
    """
    pump = SignalEventPump(config)
    pump.install()
    server = server_factory(config)
    sys.exit(pump.run(server))


class SupervisorHandle:
    """
    Parent-side handle on the probe child process.
    """

    def __init__(self, process, config: ProbeConfig):
        self._process = process
        self.config = config

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def exitcode(self) -> Optional[int]:
        return self._process.exitcode

    def is_alive(self) -> bool:
        return self._process.is_alive()

    def join(self, timeout: Optional[float] = None):
        self._process.join(timeout)

    def stop(self, timeout: Optional[float] = None):
        """
        Ask the child to shut down, killing it if it does not exit within ``timeout``.

        The default leaves the child time for its own graceful shutdown and thread join.
        """
        if not self.is_alive():
            return
        if timeout is None:
            timeout = self.config.shutdown_timeout + 10.0
        logger.info(f"[LivenessProbe] Stopping healthcheck server with pid {self.pid}")
        os.kill(self.pid, self.config.shutdown_signum)
        self._process.join(timeout)
        if self._process.is_alive():
            logger.warning(
                f"[LivenessProbe] Healthcheck server {self.pid} did not stop within {timeout}s, killing"
            )
            self._process.kill()
            self._process.join()
        logger.info(f"[LivenessProbe] Healthcheck server stopped with exit code {self.exitcode}")


class ProbeSupervisor:
    """
    Runs the probe server in a forked child and relays shutdown/quiet signals to it.
    """

    def __init__(
        self,
        server_factory: Callable[[ProbeConfig], ProbeServer] = build_probe_server,
        install_signal_handlers: bool = True,
        mp_context=None,
    ):
        """
        Initialize the ProbeSupervisor.

        Args:
            server_factory (Callable[[ProbeConfig], ProbeServer]): Builds the server inside
                the child, after the fork, so no connection is shared with the parent.
            install_signal_handlers (bool): Relay the configured signals to the child.
                Requires start() to be called from the main thread.
            mp_context: multiprocessing context; defaults to "fork".
        """
        self.server_factory = server_factory
        self.install_signal_handlers = install_signal_handlers
        self._context = mp_context or multiprocessing.get_context("fork")

    def start(self, config: ProbeConfig) -> SupervisorHandle:
        """
        Fork the probe server process.

        Returns:
            SupervisorHandle: Handle exposing the child pid.

        Raises:
            OSError: If the child process cannot be created.
        """
        logger.info(
            f"[LivenessProbe] Starting healthcheck server on {config.host}:{config.port}{config.path}"
        )
        process = self._context.Process(
            target=run_probe_server,
            args=(config, self.server_factory),
            name="liveness-probe",
        )
        process.start()
        handle = SupervisorHandle(process, config)

        if self.install_signal_handlers:
            self._relay(config.shutdown_signum, handle, reraise_default=True)
            self._relay(config.quiet_signum, handle, reraise_default=False)
        atexit.register(handle.stop)

        logger.info(f"[LivenessProbe] Healthcheck server started in subprocess with pid {handle.pid}")
        return handle

    @staticmethod
    def _relay(signum, handle: SupervisorHandle, reraise_default: bool):
        previous = signal.getsignal(signum)

        def _handler(received, frame):
            if handle.is_alive():
                os.kill(handle.pid, received)
            if callable(previous):
                previous(received, frame)
            elif previous == signal.SIG_DFL and reraise_default:
                # Keep the default disposition of the parent, e.g. terminate on SIGTERM
                signal.signal(received, signal.SIG_DFL)
                os.kill(os.getpid(), received)

        signal.signal(signum, _handler)
