"""
API Module - Black Box Interface

Purpose: HTTP routing for the kubelet-facing sockets
Interface: Transition, health, debug and registration endpoints
Hidden: Request parsing, error responses

The API module only orchestrates - it contains no business logic.
All logic is delegated to appropriate modules. Routers live in
.transitions and .registration and are imported from there.
"""

from .models import (
    EndTransitionRequest,
    HealthResponse,
    PluginInfo,
    RegistrationStatus,
    RegistrationStatusResponse,
    StartTransitionRequest,
    TransitionResponse,
)

__all__ = [
    "StartTransitionRequest",
    "EndTransitionRequest",
    "TransitionResponse",
    "HealthResponse",
    "PluginInfo",
    "RegistrationStatus",
    "RegistrationStatusResponse",
]
