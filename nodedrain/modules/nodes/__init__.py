"""
Nodes Module - Black Box Interface

Purpose: Idempotent node scheduling changes
Interface: cordon(), uncordon()
Hidden: Read-modify-write against the cluster facade

Calling either operation twice issues at most one write.
"""

from .nodes import NodeStateModule

__all__ = ["NodeStateModule"]
