import asyncio
import os
import signal
import socket
import threading
import time
import unittest

import httpx

from contracts import probe_result
from contracts.probe_config import ProbeConfig
from core.memory_liveness_store import MemoryLivenessStore
from core.memory_work_registry import MemoryWorkRegistry
from core.probe_server import ProbeServer
from core.probe_supervisor import ProbeSupervisor

READY_TIMEOUT = 10.0


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def build_memory_server(config: ProbeConfig) -> ProbeServer:
    # Module level so the forked child can call it
    store = MemoryLivenessStore()
    asyncio.run(store.store_alive(600))
    return ProbeServer(config, store, MemoryWorkRegistry(), environ={"HOSTNAME": "e2e-host"})


def wait_for_body(url: str, expected: str, timeout: float = READY_TIMEOUT) -> httpx.Response:
    deadline = time.monotonic() + timeout
    last = None
    while time.monotonic() < deadline:
        try:
            last = httpx.get(url, timeout=1.0)
            if last.text == expected:
                return last
        except httpx.TransportError:
            pass
        time.sleep(0.05)
    raise AssertionError(f"{url} never answered {expected!r}, last response: {last!r}")


class TestServerOnThread(unittest.TestCase):
    def test_serves_quiets_and_stops(self):
        config = ProbeConfig(host="127.0.0.1", port=free_port(), shutdown_timeout=2)
        server = build_memory_server(config)
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        try:
            response = wait_for_body(config.url, probe_result.ALIVE.body)
            self.assertEqual(response.status_code, 200)

            server.quiet()
            response = httpx.get(config.url, timeout=1.0)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.text, probe_result.SHUTTING_DOWN.body)

            response = httpx.get(config.url.rstrip("/") + "/other", timeout=1.0)
            self.assertEqual(response.status_code, 404)
        finally:
            server.stop()
            thread.join(10)
        self.assertFalse(thread.is_alive())


@unittest.skipUnless(hasattr(os, "fork"), "requires fork")
class TestForkedChild(unittest.TestCase):
    def setUp(self):
        self.previous_handlers = {
            signum: signal.getsignal(signum) for signum in (signal.SIGUSR1, signal.SIGUSR2)
        }
        # The shutdown relay re-delivers the signal to this process when no handler is set
        self.received = []
        signal.signal(signal.SIGUSR2, lambda signum, frame: self.received.append(signum))
        self.handle = None

    def tearDown(self):
        for signum, handler in self.previous_handlers.items():
            signal.signal(signum, handler)
        if self.handle is not None and self.handle.is_alive():
            self.handle.stop(timeout=5)

    def test_relayed_signals_quiet_then_stop_the_child(self):
        config = ProbeConfig(
            host="127.0.0.1",
            port=free_port(),
            quiet_signal="SIGUSR1",
            shutdown_signal="SIGUSR2",
            shutdown_timeout=2,
        )
        self.handle = ProbeSupervisor(server_factory=build_memory_server).start(config)
        self.assertNotEqual(self.handle.pid, os.getpid())

        wait_for_body(config.url, probe_result.ALIVE.body)

        os.kill(os.getpid(), signal.SIGUSR1)
        wait_for_body(config.url, probe_result.SHUTTING_DOWN.body)
        self.assertTrue(self.handle.is_alive())

        os.kill(os.getpid(), signal.SIGUSR2)
        self.handle.join(20)
        self.assertFalse(self.handle.is_alive())
        self.assertEqual(self.handle.exitcode, 0)
        self.assertEqual(self.received, [signal.SIGUSR2])

    def test_port_in_use_exits_child_with_error(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen(1)
            config = ProbeConfig(host="127.0.0.1", port=taken.getsockname()[1])
            self.handle = ProbeSupervisor(
                server_factory=build_memory_server, install_signal_handlers=False
            ).start(config)
            self.handle.join(20)
        self.assertFalse(self.handle.is_alive())
        self.assertEqual(self.handle.exitcode, 1)


if __name__ == "__main__":
    unittest.main()
