import logging
from typing import Callable, List, Optional

from ..api.models import PluginInfo, RegistrationStatus

logger = logging.getLogger("nodedrain.registration")

SLM_PLUGIN_TYPE = "SLMPlugin"
SLM_PLUGIN_SERVICE = "v1alpha1.SLMPlugin"


class RegistrationFailedError(Exception):
    """The kubelet rejected this plugin."""


class RegistrationModule:
    def __init__(
        self,
        driver_name: str,
        endpoint: str,
        supported_versions: Optional[List[str]] = None,
        on_failure: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize registration module.

        Args:
            driver_name: Name announced to the kubelet
            endpoint: Socket path serving transition calls
            supported_versions: Plugin API versions served on the endpoint
            on_failure: Called with the kubelet's error when registration fails
        """
        self.driver_name = driver_name
        self.endpoint = endpoint
        self.supported_versions = supported_versions or [SLM_PLUGIN_SERVICE]
        self.on_failure = on_failure
        self.registered = False

    def get_info(self) -> PluginInfo:
        """Describe this plugin to the kubelet plugin watcher."""
        logger.info(f"GetInfo called: driver={self.driver_name}")
        return PluginInfo(
            type=SLM_PLUGIN_TYPE,
            name=self.driver_name,
            endpoint=self.endpoint,
            supported_versions=list(self.supported_versions),
        )

    def notify_registration_status(self, status: RegistrationStatus) -> None:
        """
        Record the kubelet's registration verdict.

        Raises:
            RegistrationFailedError: The kubelet did not register the plugin
        """
        if not status.plugin_registered:
            logger.error(f"Registration failed: {status.error}")
            self.registered = False
            if self.on_failure:
                self.on_failure(status.error)
            raise RegistrationFailedError(f"registration failed: {status.error}")

        self.registered = True
        logger.info("Successfully registered with kubelet")
