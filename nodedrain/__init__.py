"""
nodedrain - Server-side node drain driver

A kubelet lifecycle (SLM) plugin that drains a node on request and returns it
to service afterwards.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- cluster: Kubernetes API access (nodes, pods, evictions, transitions)
- pods: Pod eviction eligibility
- nodes: Cordon / uncordon primitives
- progress: In-flight drain bookkeeping
- eviction: Background eviction sweeps
- transitions: Drain and uncordon state machine
- registration: Kubelet plugin registration
- api: HTTP interface served to the kubelet
"""

__version__ = "0.1.0"
