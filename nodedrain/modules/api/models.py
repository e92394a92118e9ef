"""
nodedrain shared data models.

These models define the structure of all data passed between the kubelet
and the driver.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

# Request Models (kubelet input)


class StartTransitionRequest(BaseModel):
    """Request to start a lifecycle transition."""

    transition_name: str = Field(..., description="Name of the LifecycleTransition object")
    event_name: str = Field(..., description="LifecycleEvent being processed")
    node_name: str = Field(
        default="", description="Target node; empty means the driver's own node"
    )
    start: str = Field(..., description="Start condition of the transition", min_length=1)


class EndTransitionRequest(BaseModel):
    """Request to check (and finish) a lifecycle transition."""

    transition_name: str = Field(..., description="Name of the LifecycleTransition object")
    event_name: str = Field(..., description="LifecycleEvent being processed")
    node_name: str = Field(
        default="", description="Target node; empty means the driver's own node"
    )
    end: str = Field(..., description="End condition of the transition", min_length=1)


# Response Models (kubelet output)


class TransitionResponse(BaseModel):
    """
    Result of a transition call.

    A non-empty error is a retryable failure: the kubelet repeats the same
    phase on its next poll.
    """

    node_name: str
    lifecycle_condition: str = Field(
        default="", description="Resulting condition; empty when the call failed"
    )
    error: Optional[str] = Field(None, description="Retryable error message")

    @property
    def ok(self) -> bool:
        return not self.error


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status", pattern="^(healthy|unhealthy)$")
    node_name: str
    active_event: Optional[str] = None
    running_sweeps: int = 0
    version: str


# Registration Models (kubelet plugin watcher)


class PluginInfo(BaseModel):
    """Information the kubelet needs to talk to this plugin."""

    type: str = Field(default="SLMPlugin", description="Plugin type")
    name: str = Field(..., description="Driver name")
    endpoint: str = Field(..., description="Unix socket serving transition calls")
    supported_versions: List[str] = Field(default_factory=list)


class RegistrationStatus(BaseModel):
    """Registration outcome reported back by the kubelet."""

    plugin_registered: bool
    error: str = ""


class RegistrationStatusResponse(BaseModel):
    """Acknowledgement of a registration status."""

    acknowledged: bool = True


__all__ = [
    # Request models
    "StartTransitionRequest",
    "EndTransitionRequest",
    # Response models
    "TransitionResponse",
    "HealthResponse",
    # Registration models
    "PluginInfo",
    "RegistrationStatus",
    "RegistrationStatusResponse",
]
