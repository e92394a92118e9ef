"""
Registration Endpoints for nodedrain

Served on the registration socket that the kubelet plugin watcher discovers.
"""

from fastapi import APIRouter

from ..registration import RegistrationModule
from .models import PluginInfo, RegistrationStatus, RegistrationStatusResponse


def create_registration_router(registration: RegistrationModule) -> APIRouter:
    """
    Create registration router with injected registration module.

    Args:
        registration: Registration module instance

    Returns:
        FastAPI router with the plugin watcher endpoints
    """
    router = APIRouter(tags=["registration"])

    @router.get("/v1/info", response_model=PluginInfo)
    async def get_info() -> PluginInfo:
        """Describe the plugin (type, name, endpoint, versions)."""
        return registration.get_info()

    @router.post("/v1/registration-status", response_model=RegistrationStatusResponse)
    async def notify_registration_status(status: RegistrationStatus) -> RegistrationStatusResponse:
        """
        Receive the kubelet's registration verdict.

        Returns:
            200: Registration acknowledged
            500: Kubelet reported a failed registration
        """
        registration.notify_registration_status(status)
        return RegistrationStatusResponse()

    return router
