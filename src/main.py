import argparse
import logging
import signal
import sys

import httpx

from config.logging_config import setup_logging
from contracts.probe_config import ProbeConfig
from core.probe_supervisor import ProbeSupervisor

logger = logging.getLogger(__name__)


def serve(config: ProbeConfig) -> int:
    """
    Run the supervised probe server until the child process exits.
    """

    def _on_shutdown(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, waiting for healthcheck server")

    # Installed before the supervisor so its relay chains here and this process outlives the child
    signal.signal(config.shutdown_signum, _on_shutdown)
    handle = ProbeSupervisor().start(config)
    while handle.is_alive():
        handle.join(1.0)
    logger.info(f"Healthcheck server {handle.pid} exited with code {handle.exitcode}")
    return handle.exitcode or 0


def check(url: str, timeout: float) -> int:
    """
    Probe ``url`` once: 0 on a 2xx answer, 1 otherwise.
    """
    try:
        resp = httpx.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.error(f"Probe request to {url} failed: {e}")
        return 1
    if resp.is_success:
        logger.info(f"{url} answered {resp.status_code}: {resp.text}")
        return 0
    logger.error(f"{url} answered {resp.status_code}: {resp.text}")
    return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Liveness probe for a background job worker")
    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("serve", help="run the probe server in a supervised child process")
    check_p = sub.add_parser("check", help="query the probe endpoint once (for container health checks)")
    check_p.add_argument("--url", default=None, help="probe URL (defaults to the configured endpoint)")
    check_p.add_argument("--timeout", type=float, default=5.0, help="request timeout in seconds")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    config = ProbeConfig.from_config()
    if args.command == "serve":
        return serve(config)
    return check(args.url or config.url, args.timeout)


if __name__ == "__main__":
    sys.exit(main())
