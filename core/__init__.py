"""Core functionality for Hue Rooms.

This package contains:
- bridge: BridgeClient for group requests against the v1 API
- reconciler: GroupStateReconciler turning partial requests into full updates
- auth: Bridge discovery and link button registration
- config: The single bridge configuration record
- errors: Exception types
"""
