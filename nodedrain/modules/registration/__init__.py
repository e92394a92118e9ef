"""
Registration Module - Black Box Interface

Purpose: Announce the driver's socket to the kubelet plugin watcher
Interface: get_info(), notify_registration_status()
Hidden: Plugin type and version strings

A failed registration is fatal: the composition root shuts the driver down.
"""

from .registration import (
    SLM_PLUGIN_SERVICE,
    SLM_PLUGIN_TYPE,
    RegistrationFailedError,
    RegistrationModule,
)

__all__ = [
    "SLM_PLUGIN_SERVICE",
    "SLM_PLUGIN_TYPE",
    "RegistrationFailedError",
    "RegistrationModule",
]
