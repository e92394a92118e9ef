"""
Transition Endpoints for nodedrain

Routes the kubelet calls on the driver's SLM socket. Operational failures
come back as HTTP 200 with a TransitionResponse carrying an error message;
only protocol errors (unknown condition labels) are HTTP errors.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Header

from ... import __version__
from ..eviction import EvictionCoordinator
from ..progress import ProgressStore
from ..transitions import TransitionService
from .models import EndTransitionRequest, HealthResponse, StartTransitionRequest, TransitionResponse


def create_transition_router(
    service: TransitionService,
    progress: ProgressStore,
    eviction: EvictionCoordinator,
) -> APIRouter:
    """
    Create transition router with injected modules.

    Args:
        service: Transition state machine
        progress: Drain bookkeeping (read-only here)
        eviction: Eviction coordinator (read-only here)

    Returns:
        FastAPI router with transition, health and debug endpoints
    """
    router = APIRouter()

    @router.post("/v1alpha1/transitions/start", response_model=TransitionResponse, tags=["transitions"])
    async def start_transition(
        request: StartTransitionRequest,
        x_request_timeout: Optional[int] = Header(
            None, ge=1, le=300, description="Deadline for cluster calls in seconds"
        ),
    ) -> TransitionResponse:
        """
        Start a lifecycle transition.

        Returns:
            200: TransitionResponse (check error for retryable failures)
            400: Unsupported start condition
        """
        return await service.start_transition(request, timeout=x_request_timeout)

    @router.post("/v1alpha1/transitions/end", response_model=TransitionResponse, tags=["transitions"])
    async def end_transition(
        request: EndTransitionRequest,
        x_request_timeout: Optional[int] = Header(
            None, ge=1, le=300, description="Deadline for cluster calls in seconds"
        ),
    ) -> TransitionResponse:
        """
        Poll a lifecycle transition for completion.

        Safe to call any number of times.

        Returns:
            200: TransitionResponse with the end condition when done,
                 the start condition while still in progress
            400: Unsupported end condition
        """
        return await service.end_transition(request, timeout=x_request_timeout)

    @router.get("/healthz", response_model=HealthResponse, tags=["health"])
    async def healthz() -> HealthResponse:
        """Liveness of the driver process."""
        return HealthResponse(
            status="healthy",
            node_name=service.node_name,
            active_event=progress.active_event,
            running_sweeps=eviction.running,
            version=__version__,
        )

    @router.get("/debug/progress", tags=["debug"])
    async def debug_progress() -> Dict:
        """
        Diagnostic view of the drain in flight.

        Per-pod eviction errors are never reported through transition
        responses; this is the only place they are exposed.
        """
        snapshot = progress.snapshot()
        snapshot["running_sweeps"] = eviction.running
        return snapshot

    return router
