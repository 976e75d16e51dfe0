"""Worker count limits for batch probing and thumbnail extraction."""

from __future__ import annotations

import logging
from typing import Literal

import psutil

LOG = logging.getLogger(__name__)

Workload = Literal["probe", "thumbnail"]

# Probes are short and mostly I/O bound; thumbnails decode a frame each
_WORKLOAD_LIMITS: dict[str, dict[str, int]] = {
    "probe": {"cap": 8, "cpu_threshold": 80, "temp_high": 75, "temp_moderate": 65, "memory_threshold": 85},
    "thumbnail": {"cap": 4, "cpu_threshold": 70, "temp_high": 70, "temp_moderate": 60, "memory_threshold": 80},
}

FALLBACK_WORKERS = 1


def get_thermal_safe_worker_count(configured_workers: int | None, workload: Workload = "probe") -> int:
    """
    Get a number of workers that doesn't overwhelm the system.

    Args:
        configured_workers: The configured worker count, or None for auto-detection
        workload: Kind of batch job, which sets the caps and load thresholds

    Returns:
        Safe number of workers, at least 1

    """
    limits = _WORKLOAD_LIMITS[workload]

    if configured_workers is not None and configured_workers > 0:
        safe_workers = min(configured_workers, _get_system_limit(workload))
        if safe_workers < configured_workers:
            LOG.warning(
                "Reducing configured workers from %d to %d due to system load for %s jobs",
                configured_workers,
                safe_workers,
                workload,
            )
        return safe_workers

    try:
        logical_cores = psutil.cpu_count(logical=True) or 1
        cpu_percent = psutil.cpu_percent(interval=0.5)

        max_workers = min(max(1, logical_cores // 2), _get_system_limit(workload), limits["cap"])

        if cpu_percent > limits["cpu_threshold"]:
            max_workers = max(1, max_workers // 2)
            LOG.warning("High CPU load detected (%.1f%%), reducing %s workers to %d", cpu_percent, workload, max_workers)

        LOG.info(
            "%s workers: %d logical cores, CPU load %.1f%%, using %d",
            workload.title(),
            logical_cores,
            cpu_percent,
            max_workers,
        )
    except (OSError, AttributeError, ValueError) as e:
        LOG.warning("Failed to detect system specs with psutil: %s. Using %d worker.", e, FALLBACK_WORKERS)
        return FALLBACK_WORKERS
    else:
        return max_workers


def _get_max_temperature() -> float:
    """Get maximum current temperature from all available sensors."""
    if not hasattr(psutil, "sensors_temperatures"):
        return 0.0

    temps = psutil.sensors_temperatures()
    if not temps:
        return 0.0

    return max((entry.current or 0.0 for entries in temps.values() for entry in entries), default=0.0)


def _get_system_limit(workload: Workload) -> int:
    """Upper bound from temperature and memory pressure."""
    limits = _WORKLOAD_LIMITS[workload]
    try:
        max_temp = _get_max_temperature()
        if max_temp > limits["temp_high"]:
            return 1
        if max_temp > limits["temp_moderate"]:
            return max(1, limits["cap"] // 2)

        if psutil.virtual_memory().percent > limits["memory_threshold"]:
            return max(1, limits["cap"] // 4)
    except (OSError, AttributeError, ValueError):
        return FALLBACK_WORKERS
    return limits["cap"]
