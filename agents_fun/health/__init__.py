"""Health subsystem — liveness snapshot from stored events."""

from .monitor import NOT_YET_COMPUTED, HealthCheckResponse, HealthMonitor
