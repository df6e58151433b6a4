#!/usr/bin/env python3

import os
from mediatidylib.core import utils

#============================================

def trim_to_boundary(input_file: str, output_file: str, end_seconds: float) -> str:
	"""
	Stream-copy [0, end_seconds) of input_file into output_file.
	"""
	if end_seconds <= 0:
		raise RuntimeError("trim point must be positive")
	cmd = [
		"ffmpeg", "-y", "-hide_banner", "-loglevel", "error", "-nostdin",
		"-i", input_file,
		"-t", f"{float(end_seconds):.3f}",
		"-map", "0",
		"-c", "copy",
		output_file,
	]
	utils.run_process(cmd, capture_output=True)
	if not os.path.isfile(output_file):
		raise RuntimeError(f"trim failed: {output_file}")
	return output_file

