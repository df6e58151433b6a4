#!/usr/bin/env python3

import os
import shlex
import subprocess
from tqdm import tqdm
from mediatidylib.core import utils

#============================================

HEVC_CODEC_NAMES = ('hevc', 'h265')

#============================================

def build_hevc_command(input_file: str, output_file: str, crf: int = 26,
	preset: str = 'medium', copy_audio: bool = True,
	copy_subs: bool = True) -> list:
	cmd = [
		"ffmpeg", "-y", "-hide_banner", "-loglevel", "error", "-nostdin",
		"-i", input_file,
		"-map", "0:v:0",
	]
	if copy_audio:
		cmd += ["-map", "0:a?"]
	if copy_subs:
		cmd += ["-map", "0:s?"]
	cmd += [
		"-c:v", "libx265",
		"-crf", str(int(crf)),
		"-preset", preset,
		"-tag:v", "hvc1",
	]
	if copy_audio:
		cmd += ["-c:a", "copy"]
	if copy_subs:
		cmd += ["-c:s", "copy"]
	cmd += ["-progress", "pipe:1", "-nostats", output_file]
	return cmd

#============================================

def parse_progress_seconds(line: str) -> float | None:
	"""
	Parse an ffmpeg -progress line into elapsed output seconds.

	Returns:
		float | None: Seconds, or None when the line carries no time.
	"""
	text = line.strip()
	# out_time_us and out_time_ms are both microseconds in ffmpeg output
	for key in ("out_time_us=", "out_time_ms="):
		if text.startswith(key):
			value = text.split("=", 1)[1]
			try:
				return int(value) / 1_000_000.0
			except ValueError:
				return None
	return None

#============================================

def run_with_progress(cmd: list, duration: float | None, label: str) -> None:
	"""
	Run ffmpeg with -progress pipe:1 and drive a tqdm bar.
	"""
	showcmd = shlex.join(cmd)
	quiet = utils.is_quiet_mode()
	if not quiet:
		print(f"CMD: '{showcmd}'")
	proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
		text=True, bufsize=1)
	total = round(duration, 1) if duration else None
	progress = tqdm(total=total, desc=label, unit="s", disable=quiet,
		bar_format="{l_bar}{bar}| {n:.1f}/{total_fmt}s [{elapsed}<{remaining}]")
	try:
		for line in proc.stdout:
			seconds = parse_progress_seconds(line)
			if seconds is None:
				continue
			if total is not None:
				seconds = min(seconds, total)
			progress.update(max(0.0, seconds - progress.n))
		stderr_text = proc.stderr.read()
		returncode = proc.wait()
	finally:
		progress.close()
		proc.stdout.close()
		proc.stderr.close()
	if returncode != 0:
		raise RuntimeError(f"command failed: {showcmd}\n{stderr_text.strip()}")
	return

#============================================

def encode_hevc(input_file: str, output_file: str, duration: float | None,
	crf: int = 26, preset: str = 'medium') -> str:
	cmd = build_hevc_command(input_file, output_file, crf=crf, preset=preset)
	run_with_progress(cmd, duration, os.path.basename(input_file))
	if not os.path.isfile(output_file):
		raise RuntimeError(f"hevc encode failed: {output_file}")
	return output_file
