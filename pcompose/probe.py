"""Health probe configuration: exec and HTTP checks with their timing defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import SplitResult, urlsplit

DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_SCHEME = "http"
DEFAULT_HTTP_PATH = "/"

DEFAULT_PERIOD_SECONDS = 10
DEFAULT_TIMEOUT_SECONDS = 1
DEFAULT_SUCCESS_THRESHOLD = 1
DEFAULT_FAILURE_THRESHOLD = 3


@dataclass
class ExecProbe:
    """A probe that runs a command and checks its exit status."""

    command: str = ""
    working_dir: str = ""


@dataclass
class HttpProbe:
    """A probe that issues an HTTP GET request."""

    host: str = ""
    path: str = ""
    scheme: str = ""
    port: int = 0

    def url(self) -> SplitResult:
        """Build and parse the probe URL; raises ValueError if it is malformed."""
        if self.port != 0:
            text = f"{self.scheme}://{self.host}:{self.port}{self.path}"
        else:
            text = f"{self.scheme}://{self.host}{self.path}"
        parsed = urlsplit(text)
        # Reading the port validates it and raises ValueError when out of range.
        _ = parsed.port
        return parsed


def _exec_from_dict(data: Mapping[str, Any] | None) -> ExecProbe | None:
    if data is None:
        return None
    return ExecProbe(
        command=str(data.get("command") or ""),
        working_dir=str(data.get("working_dir") or ""),
    )


def _http_from_dict(data: Mapping[str, Any] | None) -> HttpProbe | None:
    if data is None:
        return None
    return HttpProbe(
        host=str(data.get("host") or ""),
        path=str(data.get("path") or ""),
        scheme=str(data.get("scheme") or ""),
        port=int(data.get("port") or 0),
    )


def _non_empty(pairs: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in pairs.items() if value}


@dataclass
class Probe:
    """Liveness or readiness probe settings."""

    exec: ExecProbe | None = None
    http_get: HttpProbe | None = None
    initial_delay: int = 0
    period_seconds: int = 0
    timeout_seconds: int = 0
    success_threshold: int = 0
    failure_threshold: int = 0

    def validate_and_set_defaults(self) -> None:
        """Replace out-of-range settings with their defaults."""
        if self.initial_delay < 0:
            self.initial_delay = 0
        if self.period_seconds < 1:
            self.period_seconds = DEFAULT_PERIOD_SECONDS
        if self.timeout_seconds < 1:
            self.timeout_seconds = DEFAULT_TIMEOUT_SECONDS
        if self.success_threshold < 1:
            self.success_threshold = DEFAULT_SUCCESS_THRESHOLD
        if self.failure_threshold < 1:
            self.failure_threshold = DEFAULT_FAILURE_THRESHOLD
        self._set_http_defaults()

    def _set_http_defaults(self) -> None:
        http = self.http_get
        if http is None:
            return
        if not http.host.strip():
            http.host = DEFAULT_HTTP_HOST
        if not http.scheme.strip():
            http.scheme = DEFAULT_HTTP_SCHEME
        if not http.path.strip():
            http.path = DEFAULT_HTTP_PATH
        if not 1 <= http.port <= 65535:
            # An undefined or invalid port is treated as not given.
            http.port = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Probe:
        """Build a probe from its configuration mapping."""
        data = data or {}
        return cls(
            exec=_exec_from_dict(data.get("exec")),
            http_get=_http_from_dict(data.get("http_get")),
            initial_delay=int(data.get("initial_delay_seconds") or 0),
            period_seconds=int(data.get("period_seconds") or 0),
            timeout_seconds=int(data.get("timeout_seconds") or 0),
            success_threshold=int(data.get("success_threshold") or 0),
            failure_threshold=int(data.get("failure_threshold") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration mapping, leaving out empty values."""
        result: dict[str, Any] = {}
        if self.exec is not None:
            result["exec"] = _non_empty(
                {"command": self.exec.command, "working_dir": self.exec.working_dir}
            )
        if self.http_get is not None:
            result["http_get"] = _non_empty(
                {
                    "host": self.http_get.host,
                    "path": self.http_get.path,
                    "scheme": self.http_get.scheme,
                    "port": self.http_get.port,
                }
            )
        result.update(
            _non_empty(
                {
                    "initial_delay_seconds": self.initial_delay,
                    "period_seconds": self.period_seconds,
                    "timeout_seconds": self.timeout_seconds,
                    "success_threshold": self.success_threshold,
                    "failure_threshold": self.failure_threshold,
                }
            )
        )
        return result