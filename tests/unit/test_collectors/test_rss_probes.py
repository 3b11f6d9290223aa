"""
Unit tests for the resident-memory probes and the probe factory.
"""

import os

import psutil
import pytest

from peakwatch.collectors import (
    PROBE_TYPES,
    RssProcfsProbe,
    RssPsutilProbe,
    create_probe,
)
from peakwatch.validation import TargetNotFoundError, TargetVanishedError


def _write_status(proc_root, pid, vmrss_kb=None):
    pid_dir = proc_root / str(pid)
    pid_dir.mkdir(parents=True, exist_ok=True)
    lines = ["Name:\tpython3", "State:\tS (sleeping)", f"Pid:\t{pid}", "VmPeak:\t  300000 kB"]
    if vmrss_kb is not None:
        lines.append(f"VmRSS:\t{vmrss_kb:>8} kB")
    lines.append("Threads:\t1")
    (pid_dir / "status").write_text("\n".join(lines) + "\n")


@pytest.mark.unit
class TestRssPsutilProbe:
    """Test cases for the psutil-backed probe."""

    def test_read_converts_bytes_to_kb(self, mock_psutil):
        """RSS is reported in whole kilobytes."""
        mock_psutil["process_instance"].memory_info.return_value.rss = 5 * 1024 * 1024 + 700

        probe = RssPsutilProbe(12345)
        probe.resolve()

        assert probe.read_kb() == 5 * 1024
        mock_psutil["Process"].assert_called_once_with(12345)

    def test_resolve_missing_process(self, mock_psutil):
        """A pid with no process is a startup failure."""
        mock_psutil["Process"].side_effect = psutil.NoSuchProcess(12345)

        with pytest.raises(TargetNotFoundError) as exc_info:
            RssPsutilProbe(12345).resolve()
        assert exc_info.value.pid == 12345

    def test_resolve_access_denied(self, mock_psutil):
        """A process we may not inspect cannot be a target."""
        mock_psutil["process_instance"].memory_info.side_effect = psutil.AccessDenied(12345)

        with pytest.raises(TargetNotFoundError, match="access denied"):
            RssPsutilProbe(12345).resolve()

    def test_resolve_rejects_zombie(self, mock_psutil):
        """An exited but unreaped target cannot be measured from the start."""
        mock_psutil["process_instance"].memory_info.return_value.rss = 0
        mock_psutil["process_instance"].status.return_value = psutil.STATUS_ZOMBIE

        with pytest.raises(TargetNotFoundError, match="zombie"):
            RssPsutilProbe(12345).resolve()

    def test_read_after_exit_reports_vanished(self, mock_psutil):
        """Reads against an exited target raise TargetVanishedError."""
        probe = RssPsutilProbe(12345)
        probe.resolve()
        mock_psutil["process_instance"].memory_info.side_effect = psutil.NoSuchProcess(12345)

        with pytest.raises(TargetVanishedError):
            probe.read_kb()

    def test_zombie_target_reports_vanished(self, mock_psutil):
        """An unreaped target with an empty resident set counts as gone."""
        probe = RssPsutilProbe(12345)
        probe.resolve()
        mock_psutil["process_instance"].memory_info.return_value.rss = 0
        mock_psutil["process_instance"].status.return_value = psutil.STATUS_ZOMBIE

        with pytest.raises(TargetVanishedError):
            probe.read_kb()

    def test_read_own_process(self):
        """Reading this very process returns a plausible size."""
        probe = RssPsutilProbe(os.getpid())
        probe.resolve()
        assert probe.read_kb() > 1024


@pytest.mark.unit
class TestRssProcfsProbe:
    """Test cases for the /proc status probe, against a fake proc root."""

    def test_reads_vmrss(self, temp_dir):
        _write_status(temp_dir, 321, vmrss_kb=76742)
        probe = RssProcfsProbe(321, proc_root=temp_dir)

        probe.resolve()
        assert probe.read_kb() == 76742

    def test_missing_status_file(self, temp_dir):
        with pytest.raises(TargetNotFoundError):
            RssProcfsProbe(321, proc_root=temp_dir).resolve()

    def test_missing_vmrss_line_is_not_resolvable(self, temp_dir):
        """Zombies and kernel threads carry no VmRSS line."""
        _write_status(temp_dir, 321, vmrss_kb=None)
        with pytest.raises(TargetNotFoundError, match="VmRSS"):
            RssProcfsProbe(321, proc_root=temp_dir).resolve()

    def test_vanishing_status_file(self, temp_dir):
        _write_status(temp_dir, 321, vmrss_kb=100)
        probe = RssProcfsProbe(321, proc_root=temp_dir)
        probe.resolve()

        (temp_dir / "321" / "status").unlink()
        with pytest.raises(TargetVanishedError):
            probe.read_kb()

    @pytest.mark.skipif(not os.path.exists("/proc/self/status"), reason="requires procfs")
    def test_agrees_with_psutil_on_own_process(self):
        procfs_kb = RssProcfsProbe(os.getpid()).read_kb()
        psutil_kb = psutil.Process().memory_info().rss // 1024
        # Both read the same counter; allow for allocations in between.
        assert abs(procfs_kb - psutil_kb) < 4096


@pytest.mark.unit
class TestProbeFactory:

    def test_known_types(self):
        assert set(PROBE_TYPES) == {"rss_psutil", "rss_procfs"}

    def test_create_psutil_probe(self):
        probe = create_probe("rss_psutil", 99)
        assert isinstance(probe, RssPsutilProbe)
        assert probe.pid == 99
        assert probe.get_metric_field() == "RSS_KB"

    def test_create_procfs_probe_with_kwargs(self, temp_dir):
        probe = create_probe("rss_procfs", 99, proc_root=temp_dir)
        assert isinstance(probe, RssProcfsProbe)
        assert probe.status_path == temp_dir / "99" / "status"

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown metric type"):
            create_probe("pss_psutil", 99)
