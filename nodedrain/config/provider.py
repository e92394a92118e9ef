"""Configuration provider following Black Box Design principles."""
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union

DEFAULT_DRIVER_NAME = "drain.slm.k8s.io"
DEFAULT_PLUGINS_DIR = "/var/lib/kubelet/plugins"
DEFAULT_REGISTRATION_DIR = "/var/lib/kubelet/plugins_registry"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go-style strings such as
    ``30s``, ``5m`` or ``1m30s``.

    Raises:
        ValueError: If the value is not a valid duration
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ValueError(f"Invalid duration: {value!r}")
    return sum(float(n) * _DURATION_UNITS[u] for n, u in parts)


@dataclass
class DriverConfig:
    """Drain driver configuration."""
    driver_name: str
    node_name: str
    eviction_timeout: float
    grace_period: int  # -1 = use the pod's own grace period
    sla: float
    request_timeout: float

    @property
    def grace_period_override(self) -> Optional[int]:
        """Grace period to send with evictions, or None for the pod default."""
        return self.grace_period if self.grace_period >= 0 else None


@dataclass
class KubeClientConfig:
    """Kubernetes client configuration."""
    kubeconfig: Optional[str]

    @property
    def in_cluster(self) -> bool:
        """Use the in-cluster service account when no kubeconfig is set."""
        return not self.kubeconfig


@dataclass
class PluginConfig:
    """Kubelet plugin socket configuration."""
    driver_name: str
    registration_dir: str
    plugins_dir: str

    @property
    def datadir(self) -> str:
        return os.path.join(self.plugins_dir, self.driver_name)

    @property
    def endpoint(self) -> str:
        """Socket the kubelet uses for transition calls."""
        return os.path.join(self.datadir, "slm.sock")

    @property
    def registration_socket(self) -> str:
        """Socket watched by the kubelet plugin watcher."""
        return os.path.join(self.registration_dir, f"{self.driver_name}-reg.sock")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_driver_config(self) -> DriverConfig:
        """Get drain driver configuration."""
        ...

    def get_kube_client_config(self) -> KubeClientConfig:
        """Get Kubernetes client configuration."""
        ...

    def get_plugin_config(self) -> PluginConfig:
        """Get kubelet plugin configuration."""
        ...

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        ...


class EnvConfigProvider:
    """
    Environment-based configuration provider.

    Explicit overrides (for example parsed command-line flags) take
    precedence over environment variables; unset overrides (None) fall
    through to the environment and then to defaults.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        self._overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def _get(self, key: str, env: str, default: Any = None) -> Any:
        if key in self._overrides:
            return self._overrides[key]
        return os.getenv(env, default)

    def get_driver_config(self) -> DriverConfig:
        """Get drain driver configuration from overrides and environment."""
        node_name = self._get("node_name", "NODE_NAME")
        if not node_name:
            raise ValueError(
                "Node name is required. "
                "Pass --node-name or set the NODE_NAME environment variable "
                "(usually from the downward API: spec.nodeName)."
            )

        return DriverConfig(
            driver_name=self._get("driver_name", "DRIVER_NAME", DEFAULT_DRIVER_NAME),
            node_name=node_name,
            eviction_timeout=parse_duration(self._get("eviction_timeout", "EVICTION_TIMEOUT", "30s")),
            grace_period=int(self._get("grace_period", "GRACE_PERIOD", "-1")),
            sla=parse_duration(self._get("sla", "SLA", "5m")),
            request_timeout=parse_duration(self._get("request_timeout", "REQUEST_TIMEOUT", "30s")),
        )

    def get_kube_client_config(self) -> KubeClientConfig:
        """Get Kubernetes client configuration from overrides and environment."""
        return KubeClientConfig(kubeconfig=self._get("kubeconfig", "KUBECONFIG") or None)

    def get_plugin_config(self) -> PluginConfig:
        """Get kubelet plugin configuration from overrides and environment."""
        return PluginConfig(
            driver_name=self._get("driver_name", "DRIVER_NAME", DEFAULT_DRIVER_NAME),
            registration_dir=self._get(
                "registration_dir", "PLUGIN_REGISTRATION_PATH", DEFAULT_REGISTRATION_DIR
            ),
            plugins_dir=self._get("plugins_dir", "PLUGINS_DATADIR", DEFAULT_PLUGINS_DIR),
        )

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration from overrides and environment."""
        return LoggingConfig(level=str(self._get("log_level", "LOG_LEVEL", "INFO")).upper())
