"""Tests for worker count limits."""

from unittest.mock import Mock, patch

from export_toolkit.core.thermal import get_thermal_safe_worker_count


def test_configured_workers_kept_on_idle_system() -> None:
    """An explicit count is honoured when nothing is hot or full."""
    with (
        patch("export_toolkit.core.thermal.psutil.sensors_temperatures", return_value={}, create=True),
        patch("export_toolkit.core.thermal.psutil.virtual_memory", return_value=Mock(percent=20.0)),
    ):
        assert get_thermal_safe_worker_count(3, "probe") == 3


def test_configured_workers_capped_when_hot() -> None:
    """High temperatures drop to a single worker."""
    sensor = Mock(current=90.0)
    with patch(
        "export_toolkit.core.thermal.psutil.sensors_temperatures", return_value={"cpu": [sensor]}, create=True
    ):
        assert get_thermal_safe_worker_count(6, "thumbnail") == 1


def test_auto_detection_halves_under_load() -> None:
    """Busy systems get half the usual workers."""
    with (
        patch("export_toolkit.core.thermal.psutil.sensors_temperatures", return_value={}, create=True),
        patch("export_toolkit.core.thermal.psutil.virtual_memory", return_value=Mock(percent=20.0)),
        patch("export_toolkit.core.thermal.psutil.cpu_count", return_value=16),
        patch("export_toolkit.core.thermal.psutil.cpu_percent", return_value=95.0),
    ):
        assert get_thermal_safe_worker_count(None, "probe") == 4


def test_auto_detection_falls_back_when_psutil_fails() -> None:
    """Monitoring errors mean one worker."""
    with patch("export_toolkit.core.thermal.psutil.cpu_count", side_effect=OSError("no proc")):
        assert get_thermal_safe_worker_count(None, "thumbnail") == 1
