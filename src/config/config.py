import os


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    # Probe HTTP endpoint
    PROBE_HOST = os.environ.get("PROBE_HOST", "0.0.0.0")
    PROBE_PORT = int(os.environ.get("PROBE_PORT", "7433"))
    PROBE_PATH = os.environ.get("PROBE_PATH", "/")
    # Seconds the probe keeps answering "shutting down" after a quiet signal
    PROBE_QUIET_TIMEOUT = float(os.environ.get("PROBE_QUIET_TIMEOUT", "180"))
    # Seconds in-flight probe requests get to finish once shutdown is requested
    PROBE_SHUTDOWN_TIMEOUT = float(os.environ.get("PROBE_SHUTDOWN_TIMEOUT", "10"))

    # Signal names as found in the signal module, e.g. SIGTERM
    PROBE_SHUTDOWN_SIGNAL = os.environ.get("PROBE_SHUTDOWN_SIGNAL", "SIGTERM")
    PROBE_QUIET_SIGNAL = os.environ.get("PROBE_QUIET_SIGNAL", "SIGTSTP")

    # Environment variable holding the hostname the worker registers under
    PROBE_HOSTNAME_ENV = os.environ.get("PROBE_HOSTNAME_ENV", "HOSTNAME")

    # Collaborator backends: "memory" or "redis"
    STORE_TYPE = os.environ.get("STORE_TYPE", "redis")
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379")
    REDIS_DB = int(os.environ.get("REDIS_DB", "0"))

    LIVENESS_KEY_PREFIX = os.environ.get("LIVENESS_KEY_PREFIX", "worker_liveness")
    LIVENESS_TTL_SECONDS = int(os.environ.get("LIVENESS_TTL_SECONDS", "600"))
    HEARTBEAT_SECONDS = float(os.environ.get("HEARTBEAT_SECONDS", "5"))
