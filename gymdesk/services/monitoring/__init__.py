"""
Monitoring subpackage - Store connection health.

- ConnectionMonitor: owns the store client, probes it and publishes status
- TransientConnectivityError: retryable probe failure
"""

from gymdesk.services.monitoring.connection_monitor import ConnectionMonitor, TransientConnectivityError

__all__ = [
    "ConnectionMonitor",
    "TransientConnectivityError",
]
