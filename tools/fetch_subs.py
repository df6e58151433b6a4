#!/usr/bin/env python3

"""
fetch_subs.py

Download missing subtitles for video files with the subliminal command line,
pausing between requests so subtitle providers do not throttle us.
"""

# Standard Library
import argparse
import os
import sys
import time

script_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = script_dir
if os.path.basename(script_dir) == "tools":
	repo_root = os.path.dirname(script_dir)
if repo_root not in sys.path:
	sys.path.insert(0, repo_root)

# local repo modules
from mediatidylib import sublib
from mediatidylib.core import utils

#============================================

def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Fetch missing subtitles with subliminal."
	)
	parser.add_argument(
		"paths", nargs="+",
		help="Video files or directories."
	)
	parser.add_argument(
		"-l", "--language", dest="language", default="en",
		help="Subtitle language code (default: en)."
	)
	parser.add_argument(
		"-p", "--provider", dest="providers", action="append", default=None,
		help="Restrict to a subliminal provider (repeatable)."
	)
	parser.add_argument(
		"-m", "--min-score", dest="min_score", type=int, default=None,
		help="Minimum subliminal match score."
	)
	parser.add_argument(
		"-w", "--delay", dest="delay", type=float, default=5.0,
		help="Seconds to wait between downloads (default: 5)."
	)
	parser.add_argument(
		"-x", "--max-failures", dest="max_failures", type=int, default=3,
		help="Stop after this many consecutive failures (default: 3)."
	)
	parser.add_argument(
		"-R", "--recursive", dest="recursive", action="store_true",
		help="Walk directories recursively."
	)
	parser.set_defaults(recursive=False)
	return parser.parse_args()

#============================================

def files_needing_subs(files: list, language: str) -> list:
	return [item for item in files if not sublib.has_subtitles(item, language)]

#============================================

def fetch_all(files: list, language: str, delay: float, max_failures: int,
	providers: list | None = None, min_score: int | None = None,
	sleep=time.sleep, download=sublib.download_subtitles) -> dict:
	"""
	Download subtitles for each file in order.

	Args:
		files: Video files lacking subtitles.
		language: Subtitle language code.
		delay: Seconds to sleep between downloads.
		max_failures: Consecutive failures that abort the batch.
		providers: Optional provider names.
		min_score: Optional minimum score.
		sleep: Sleep function.
		download: Download function, returns True when a subtitle appeared.

	Returns:
		dict: Lists of 'downloaded', 'missing', 'failed', 'not_attempted' files.
	"""
	result = {'downloaded': [], 'missing': [], 'failed': [], 'not_attempted': []}
	consecutive_failures = 0
	for index, video_file in enumerate(files):
		if consecutive_failures >= max_failures:
			result['not_attempted'] = list(files[index:])
			print(f"Stopping after {consecutive_failures} consecutive failures")
			break
		if index > 0 and delay > 0:
			sleep(delay)
		try:
			found = download(video_file, language, providers, min_score)
		except RuntimeError as exc:
			print(f"FAILED: {os.path.basename(video_file)}: {str(exc).splitlines()[0]}")
			result['failed'].append(video_file)
			consecutive_failures += 1
			continue
		consecutive_failures = 0
		if found:
			result['downloaded'].append(video_file)
		else:
			result['missing'].append(video_file)
	return result

#============================================

def main() -> None:
	args = parse_args()
	if args.delay < 0:
		raise RuntimeError("delay must be non-negative")
	if args.max_failures < 1:
		raise RuntimeError("max_failures must be at least 1")
	utils.check_dependency("subliminal")
	files = utils.collect_files(args.paths, utils.VIDEO_EXTENSIONS,
		recursive=args.recursive)
	pending = files_needing_subs(files, args.language)
	result = fetch_all(pending, args.language, args.delay, args.max_failures,
		providers=args.providers, min_score=args.min_score)
	print("")
	print("Fetch Subs Summary")
	print(f"Videos: {len(files)}")
	print(f"Already had subtitles: {len(files) - len(pending)}")
	print(f"Downloaded: {len(result['downloaded'])}")
	print(f"Not found: {len(result['missing'])}")
	print(f"Failed: {len(result['failed'])}")
	if len(result['not_attempted']) > 0:
		print(f"Not attempted: {len(result['not_attempted'])}")
	print("")
	if len(result['failed']) > 0:
		sys.exit(1)
	return

#============================================

if __name__ == '__main__':
	main()
