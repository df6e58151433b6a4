#!/usr/bin/env python3

import json
from mediatidylib.core import utils

#============================================

def probe_duration_seconds(input_file: str) -> float:
	"""
	Probe media duration in seconds using ffprobe.

	Args:
		input_file: Media file path.

	Returns:
		float: Duration in seconds.
	"""
	cmd = [
		"ffprobe", "-v", "error",
		"-show_entries", "format=duration",
		"-of", "default=nw=1:nk=1",
		input_file,
	]
	proc = utils.run_process(cmd, capture_output=True)
	text = proc.stdout.strip()
	if text == "" or text == "N/A":
		raise RuntimeError("ffprobe did not return duration")
	seconds = float(text)
	if seconds <= 0:
		raise RuntimeError("ffprobe returned non-positive duration")
	return seconds

#============================================

def fps_fraction_to_float(value: str) -> float:
	text = str(value).strip()
	if "/" in text:
		num_text, den_text = text.split("/", 1)
		num = float(num_text)
		den = float(den_text)
		if den == 0:
			raise RuntimeError("invalid fps denominator")
		return num / den
	return float(text)

#============================================

def probe_video_stream(input_file: str) -> dict | None:
	"""
	Probe the first video stream using ffprobe.

	Args:
		input_file: Media file path.

	Returns:
		dict | None: codec_name, width, height, fps; None without video.
	"""
	cmd = [
		"ffprobe", "-v", "error",
		"-select_streams", "v:0",
		"-show_entries", "stream=codec_name,width,height,r_frame_rate,avg_frame_rate",
		"-of", "json",
		input_file,
	]
	proc = utils.run_process(cmd, capture_output=True)
	data = json.loads(proc.stdout or "{}")
	streams = data.get("streams", [])
	if len(streams) == 0:
		return None
	stream = streams[0]
	fps_value = stream.get("r_frame_rate")
	if fps_value is None or fps_value == "0/0":
		fps_value = stream.get("avg_frame_rate")
	fps = None
	if fps_value is not None and fps_value != "0/0":
		fps = fps_fraction_to_float(fps_value)
	return {
		"codec_name": str(stream.get("codec_name", "")).lower(),
		"width": int(stream.get("width", 0)),
		"height": int(stream.get("height", 0)),
		"fps": fps,
	}
