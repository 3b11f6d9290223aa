"""
Unit tests for the handshake/report artifact.
"""

import os
from unittest.mock import patch

import pytest

from peakwatch.models import Report
from peakwatch.sampler import ArtifactContents, HandshakeArtifact


@pytest.mark.unit
class TestHandshakeArtifact:
    """Test cases for HandshakeArtifact."""

    def test_allocate_uses_unique_names(self, temp_dir):
        first = HandshakeArtifact.allocate(temp_dir)
        second = HandshakeArtifact.allocate(temp_dir)

        assert first.path != second.path
        assert first.path.parent == temp_dir
        assert first.path.name.startswith(f"peakwatch-{os.getpid()}-")
        # Allocation picks a name only; the sampler creates the file.
        assert not first.exists()

    def test_allocate_creates_missing_directory(self, temp_dir):
        artifact = HandshakeArtifact.allocate(temp_dir / "nested" / "dir")
        assert artifact.path.parent.is_dir()

    def test_read_before_publish_is_empty(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        assert artifact.read() == ArtifactContents()
        assert artifact.read_pid() is None
        assert artifact.read_report() is None

    def test_publish_pid(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(4321)

        assert artifact.path.read_text() == "4321\n"
        assert artifact.read_pid() == 4321
        assert artifact.read_report() is None

    def test_publish_baseline(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(4321)
        assert artifact.read().baseline_kb is None

        artifact.publish_baseline(4321, 76742)

        assert artifact.path.read_text() == "4321\n76742\n"
        assert artifact.read() == ArtifactContents(pid=4321, baseline_kb=76742)

    def test_unparseable_baseline_keeps_pid(self, temp_dir, caplog):
        path = temp_dir / "a.handshake"
        path.write_text("4321\nlots\n")

        assert HandshakeArtifact(path).read() == ArtifactContents(pid=4321)
        assert "lots" in caplog.text

    def test_report_replaces_baseline(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_baseline(4321, 76742)
        artifact.write_report(Report(peak_delta_kb=12, baseline_kb=76742))

        assert artifact.read() == ArtifactContents(report=Report(12, 76742))

    def test_report_replaces_pid(self, temp_dir):
        """The report overwrites the handshake line instead of appending."""
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(4321)
        artifact.write_report(Report(peak_delta_kb=7701, baseline_kb=76742))

        assert artifact.path.read_text() == "7701\t76742\n"
        contents = artifact.read()
        assert contents.pid is None
        assert contents.report == Report(peak_delta_kb=7701, baseline_kb=76742)

    def test_write_leaves_no_temporary_file(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(1)
        artifact.write_report(Report(0, 1))

        assert sorted(p.name for p in temp_dir.iterdir()) == ["a.handshake"]

    @pytest.mark.parametrize("content", ["", "\n", "not-a-pid\n", "1\tx\n"])
    def test_unparseable_content_reads_as_empty(self, temp_dir, content):
        path = temp_dir / "a.handshake"
        path.write_text(content)
        assert HandshakeArtifact(path).read() == ArtifactContents()

    def test_remove(self, temp_dir):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(1)
        artifact._tmp_path.write_text("leftover")

        assert artifact.remove() is True
        assert list(temp_dir.iterdir()) == []

    def test_remove_missing_file_is_clean(self, temp_dir):
        assert HandshakeArtifact(temp_dir / "never-written").remove() is True

    def test_remove_failure_is_logged_not_raised(self, temp_dir, caplog):
        artifact = HandshakeArtifact(temp_dir / "a.handshake")
        artifact.publish_pid(1)

        with patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")):
            assert artifact.remove() is False
        assert "read-only" in caplog.text
