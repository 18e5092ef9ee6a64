import signal

from pydantic import BaseModel, ConfigDict, field_validator

from config.config import Config


class ProbeConfig(BaseModel):
    """
    Settings of a running probe server. Frozen once built.
    """

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 7433
    path: str = "/"
    quiet_timeout: float = 180.0
    shutdown_timeout: float = 10.0
    shutdown_signal: str = "SIGTERM"
    quiet_signal: str = "SIGTSTP"
    hostname_env: str = "HOSTNAME"

    @field_validator("shutdown_signal", "quiet_signal")
    @classmethod
    def _known_signal(cls, value: str) -> str:
        name = value.upper()
        if not name.startswith("SIG"):
            name = f"SIG{name}"
        if not isinstance(getattr(signal, name, None), signal.Signals):
            raise ValueError(f"Unknown signal name: {value}")
        return name

    @field_validator("path")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @property
    def shutdown_signum(self) -> signal.Signals:
        return getattr(signal, self.shutdown_signal)

    @property
    def quiet_signum(self) -> signal.Signals:
        return getattr(signal, self.quiet_signal)

    @property
    def url(self) -> str:
        host = "127.0.0.1" if self.host in ("0.0.0.0", "") else self.host
        return f"http://{host}:{self.port}{self.path}"

    @classmethod
    def from_config(cls) -> "ProbeConfig":
        """
        Build the probe configuration from environment-driven Config values.
        """
        return cls(
            host=Config.PROBE_HOST,
            port=Config.PROBE_PORT,
            path=Config.PROBE_PATH,
            quiet_timeout=Config.PROBE_QUIET_TIMEOUT,
            shutdown_timeout=Config.PROBE_SHUTDOWN_TIMEOUT,
            shutdown_signal=Config.PROBE_SHUTDOWN_SIGNAL,
            quiet_signal=Config.PROBE_QUIET_SIGNAL,
            hostname_env=Config.PROBE_HOSTNAME_ENV,
        )
