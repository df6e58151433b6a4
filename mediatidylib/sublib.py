#!/usr/bin/env python3

#python wrapper for the subliminal command line

import os
from mediatidylib.core import utils

#============================================

SUBTITLE_EXTENSIONS = ('.srt', '.ass', '.ssa', '.vtt', '.sub')

#============================================

def subtitle_candidates(video_file: str, language: str) -> list:
	root = os.path.splitext(video_file)[0]
	candidates = []
	for ext in SUBTITLE_EXTENSIONS:
		candidates.append(f"{root}.{language}{ext}")
		candidates.append(f"{root}{ext}")
	return candidates

#============================================

def has_subtitles(video_file: str, language: str) -> bool:
	for candidate in subtitle_candidates(video_file, language):
		if os.path.isfile(candidate):
			return True
	return False

#============================================

def build_download_command(video_file: str, language: str,
	providers: list | None = None, min_score: int | None = None) -> list:
	cmd = ["subliminal", "download", "-l", language]
	if providers:
		for provider in providers:
			cmd += ["-p", provider]
	if min_score is not None:
		cmd += ["-m", str(int(min_score))]
	cmd.append(video_file)
	return cmd

#============================================

def download_subtitles(video_file: str, language: str,
	providers: list | None = None, min_score: int | None = None) -> bool:
	"""
	Download subtitles for one video.

	Returns:
		bool: True when a subtitle file now exists next to the video.
	"""
	cmd = build_download_command(video_file, language, providers, min_score)
	proc = utils.run_process(cmd, capture_output=True, check=False)
	if proc.returncode != 0:
		stderr_text = (proc.stderr or '').strip()
		raise RuntimeError(f"subliminal failed for {video_file}: {stderr_text}")
	return has_subtitles(video_file, language)
