#!/usr/bin/env python3

# Standard Library
import os
import shutil
import subprocess
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
TOOLS_DIR = os.path.join(REPO_ROOT, "tools")
if TOOLS_DIR not in sys.path:
	sys.path.insert(0, TOOLS_DIR)
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import hevc_encode
from mediatidylib.media import ffmpeg_hevc

#============================================

def test_build_hevc_command_copies_other_streams() -> None:
	cmd = ffmpeg_hevc.build_hevc_command("in.mp4", "out.mkv", crf=22, preset="slow")
	assert cmd[0] == "ffmpeg"
	assert cmd[-1] == "out.mkv"
	assert cmd[cmd.index("-c:v") + 1] == "libx265"
	assert cmd[cmd.index("-crf") + 1] == "22"
	assert cmd[cmd.index("-preset") + 1] == "slow"
	assert cmd[cmd.index("-c:a") + 1] == "copy"
	assert cmd[cmd.index("-c:s") + 1] == "copy"
	assert "0:a?" in cmd
	assert "pipe:1" in cmd

#============================================

def test_build_hevc_command_without_audio() -> None:
	cmd = ffmpeg_hevc.build_hevc_command("in.mp4", "out.mkv", copy_audio=False,
		copy_subs=False)
	assert "-c:a" not in cmd
	assert "0:s?" not in cmd

#============================================

@pytest.mark.parametrize("line, expected", [
	("out_time_us=1500000\n", 1.5),
	("out_time_ms=2000000", 2.0),
	("out_time_us=N/A", None),
	("frame=12", None),
	("progress=end", None),
])
def test_parse_progress_seconds(line, expected) -> None:
	assert ffmpeg_hevc.parse_progress_seconds(line) == expected

#============================================

def test_is_hevc() -> None:
	assert hevc_encode.is_hevc({'codec_name': 'hevc'}) is True
	assert hevc_encode.is_hevc({'codec_name': 'h264'}) is False
	assert hevc_encode.is_hevc(None) is False

#============================================

def test_output_path_for() -> None:
	assert hevc_encode.output_path_for("/v/show.mp4") == "/v/show.hevc.mkv"

#============================================

def test_finish_output_replaces_only_when_smaller(tmp_path) -> None:
	original = tmp_path / "show.mp4"
	encoded = tmp_path / "show.hevc.mkv"
	original.write_bytes(b"x" * 100)
	encoded.write_bytes(b"x" * 200)
	result = hevc_encode.finish_output(str(original), str(encoded), replace=True)
	assert result['replaced'] is False
	assert original.exists() and encoded.exists()

	encoded.write_bytes(b"x" * 40)
	result = hevc_encode.finish_output(str(original), str(encoded), replace=True)
	assert result['replaced'] is True
	assert result['output'] == str(tmp_path / "show.mkv")
	assert not original.exists()
	assert not encoded.exists()
	assert (tmp_path / "show.mkv").stat().st_size == 40

#============================================

@pytest.mark.skipif(shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
	reason="ffmpeg/ffprobe not available")
def test_encode_file_dry_run(tmp_path, monkeypatch) -> None:
	monkeypatch.setenv("MEDIATIDY_QUIET", "1")
	clip = str(tmp_path / "clip.mkv")
	cmd = [
		"ffmpeg", "-y", "-hide_banner", "-loglevel", "error",
		"-f", "lavfi", "-i", "testsrc=duration=1:size=160x90:rate=10",
		"-c:v", "mpeg4", clip,
	]
	subprocess.run(cmd, check=True, capture_output=True)
	result = hevc_encode.encode_file(clip, 28, "fast", replace=False, dry_run=True)
	assert result['status'] == 'would-encode'
	assert result['output'] == str(tmp_path / "clip.hevc.mkv")
	assert not os.path.exists(result['output'])
