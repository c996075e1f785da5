"""Tests for lecturenotes.extract module."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from lecturenotes.exceptions import DependencyError, MediaExtractionError
from lecturenotes.extract import media
from lecturenotes.extract.media import (
    check_ffmpeg,
    extract_audio,
    extract_frames,
    list_frames,
    probe_duration,
)


class FakeRun:
    """Record ffmpeg invocations and optionally create the output files."""

    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "", frames: int = 0):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.frames = frames
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        if self.returncode == 0:
            target = Path(cmd[-1])
            if "%04d" in target.name:
                for i in range(1, self.frames + 1):
                    (target.parent / (target.name % i)).write_bytes(b"jpg")
            elif cmd[0] == "ffmpeg":
                target.write_bytes(b"RIFF")
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def video(tmp_path: Path) -> Path:
    path = tmp_path / "lecture.mp4"
    path.write_bytes(b"\x00" * 64)
    return path


class TestExtractAudio:
    def test_command_and_result(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        fake = FakeRun()
        monkeypatch.setattr(media.subprocess, "run", fake)

        out = tmp_path / "work" / "lecture.wav"
        audio = extract_audio(video, out)

        cmd = fake.calls[0]
        assert cmd[:4] == ["ffmpeg", "-y", "-i", str(video)]
        assert "-vn" in cmd
        assert cmd[cmd.index("-acodec") + 1] == "pcm_s16le"
        assert cmd[cmd.index("-ar") + 1] == "16000"
        assert cmd[cmd.index("-ac") + 1] == "1"
        assert audio.path == out
        assert audio.sample_rate == 16000
        assert audio.channels == 1

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(MediaExtractionError, match="not found"):
            extract_audio(tmp_path / "missing.mp4", tmp_path / "a.wav")

    def test_ffmpeg_failure(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(media.subprocess, "run", FakeRun(returncode=1, stderr="moov atom not found"))
        with pytest.raises(MediaExtractionError, match="moov atom"):
            extract_audio(video, tmp_path / "a.wav")

    def test_ffmpeg_not_installed(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        def missing(cmd, **kwargs):
            raise FileNotFoundError("ffmpeg")

        monkeypatch.setattr(media.subprocess, "run", missing)
        with pytest.raises(MediaExtractionError):
            extract_audio(video, tmp_path / "a.wav")


class TestExtractFrames:
    def test_frames_in_order(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        fake = FakeRun(frames=12)
        monkeypatch.setattr(media.subprocess, "run", fake)

        frames = extract_frames(video, tmp_path / "frames", interval_seconds=5.0)

        cmd = fake.calls[0]
        assert cmd[cmd.index("-vf") + 1] == "fps=1/5"
        assert len(frames) == 12
        assert frames.frames[0].name == "frame-0001.jpg"
        assert frames.frames[-1].name == "frame-0012.jpg"
        assert frames.frames == sorted(frames.frames)

    def test_fractional_interval(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        fake = FakeRun()
        monkeypatch.setattr(media.subprocess, "run", fake)
        extract_frames(video, tmp_path / "frames", interval_seconds=2.5)
        assert "fps=1/2.5" in fake.calls[0]

    def test_invalid_interval(self, video: Path, tmp_path: Path) -> None:
        with pytest.raises(MediaExtractionError, match="interval"):
            extract_frames(video, tmp_path / "frames", interval_seconds=0)

    def test_ffmpeg_failure(self, video: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(media.subprocess, "run", FakeRun(returncode=1, stderr="bad"))
        with pytest.raises(MediaExtractionError):
            extract_frames(video, tmp_path / "frames")


class TestListFrames:
    def test_ignores_other_files(self, tmp_path: Path) -> None:
        for name in ["frame-0002.jpg", "frame-0001.jpg", "notes.txt", "frame-0010.jpg"]:
            (tmp_path / name).write_bytes(b"")
        assert [p.name for p in list_frames(tmp_path)] == [
            "frame-0001.jpg",
            "frame-0002.jpg",
            "frame-0010.jpg",
        ]


class TestProbeDuration:
    def test_parses_duration(self, video: Path, monkeypatch) -> None:
        stdout = json.dumps({"format": {"duration": "61.5"}})
        monkeypatch.setattr(media.subprocess, "run", FakeRun(stdout=stdout))
        assert probe_duration(video) == 61.5

    def test_missing_duration(self, video: Path, monkeypatch) -> None:
        monkeypatch.setattr(media.subprocess, "run", FakeRun(stdout="{}"))
        with pytest.raises(MediaExtractionError):
            probe_duration(video)


class TestCheckFFmpeg:
    def test_missing(self, monkeypatch) -> None:
        monkeypatch.setattr(media.shutil, "which", lambda name: None)
        with pytest.raises(DependencyError) as exc:
            check_ffmpeg()
        assert exc.value.install_hint


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed")
class TestWithFFmpeg:
    def test_extract_from_generated_video(self, tmp_path: Path) -> None:
        video = tmp_path / "clip.mp4"
        subprocess.run(
            [
                "ffmpeg",
                "-y",
                "-f",
                "lavfi",
                "-i",
                "testsrc=duration=6:size=160x120:rate=10",
                "-f",
                "lavfi",
                "-i",
                "sine=frequency=440:duration=6",
                "-shortest",
                str(video),
            ],
            capture_output=True,
            check=True,
        )

        audio = extract_audio(video, tmp_path / "clip.wav")
        assert audio.path.stat().st_size > 0

        frames = extract_frames(video, tmp_path / "frames", interval_seconds=2.0)
        assert len(frames) >= 3
