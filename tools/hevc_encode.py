#!/usr/bin/env python3

"""
hevc_encode.py

Re-encode videos to HEVC (libx265), copying audio and subtitle streams.
Files that are already HEVC are skipped.
"""

# Standard Library
import argparse
import os
import sys

script_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = script_dir
if os.path.basename(script_dir) == "tools":
	repo_root = os.path.dirname(script_dir)
if repo_root not in sys.path:
	sys.path.insert(0, repo_root)

# local repo modules
from mediatidylib.core import utils
from mediatidylib.media import ffmpeg_hevc
from mediatidylib.media import ffprobe

#============================================

OUTPUT_SUFFIX = ".hevc"
OUTPUT_EXT = ".mkv"

#============================================

def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Re-encode videos to HEVC with ffmpeg/libx265."
	)
	parser.add_argument(
		"paths", nargs="+",
		help="Video files or directories."
	)
	parser.add_argument(
		"-q", "--crf", dest="crf", type=int, default=26,
		help="libx265 CRF quality (lower is better, default: 26)."
	)
	parser.add_argument(
		"-p", "--preset", dest="preset", default="medium",
		help="libx265 preset (default: medium)."
	)
	parser.add_argument(
		"-r", "--replace", dest="replace", action="store_true",
		help="Replace the original when the HEVC file is smaller."
	)
	parser.add_argument(
		"-n", "--dry-run", dest="dry_run", action="store_true",
		help="List what would be encoded."
	)
	parser.add_argument(
		"-R", "--recursive", dest="recursive", action="store_true",
		help="Walk directories recursively."
	)
	parser.set_defaults(replace=False)
	parser.set_defaults(dry_run=False)
	parser.set_defaults(recursive=False)
	return parser.parse_args()

#============================================

def is_hevc(stream: dict | None) -> bool:
	if stream is None:
		return False
	return stream.get('codec_name') in ffmpeg_hevc.HEVC_CODEC_NAMES

#============================================

def output_path_for(input_file: str) -> str:
	return utils.suffixed_path(input_file, OUTPUT_SUFFIX, new_ext=OUTPUT_EXT)

#============================================

def finish_output(input_file: str, output_file: str, replace: bool) -> dict:
	"""
	Compare sizes and optionally swap the encoded file in for the original.

	Returns:
		dict: {'output', 'input_size', 'output_size', 'replaced'}.
	"""
	input_size = os.path.getsize(input_file)
	output_size = os.path.getsize(output_file)
	replaced = False
	final_path = output_file
	if replace:
		if output_size < input_size:
			final_path = utils.replace_original(input_file, output_file)
			replaced = True
		else:
			print(f"Keeping original, HEVC is not smaller: {os.path.basename(input_file)}")
	return {
		'output': final_path,
		'input_size': input_size,
		'output_size': output_size,
		'replaced': replaced,
	}

#============================================

def encode_file(input_file: str, crf: int, preset: str, replace: bool,
	dry_run: bool) -> dict:
	utils.ensure_file_exists(input_file)
	stream = ffprobe.probe_video_stream(input_file)
	if stream is None:
		return {'input': input_file, 'status': 'no-video'}
	if is_hevc(stream):
		return {'input': input_file, 'status': 'already-hevc'}
	output_file = output_path_for(input_file)
	if dry_run:
		return {'input': input_file, 'status': 'would-encode', 'output': output_file}
	duration = ffprobe.probe_duration_seconds(input_file)
	ffmpeg_hevc.encode_hevc(input_file, output_file, duration, crf=crf, preset=preset)
	result = finish_output(input_file, output_file, replace)
	result['input'] = input_file
	result['status'] = 'encoded'
	return result

#============================================

def print_summary(results: list, failures: list) -> None:
	saved = 0
	print("")
	print("HEVC Encode Summary")
	for result in results:
		name = os.path.basename(result['input'])
		if result['status'] == 'encoded':
			saved += result['input_size'] - result['output_size']
			print(f"  {name}: {utils.format_bytes(result['input_size'])}"
				f" -> {utils.format_bytes(result['output_size'])}"
				f"{' (replaced)' if result['replaced'] else ''}")
		else:
			print(f"  {name}: {result['status']}")
	for input_file, message in failures:
		print(f"  {os.path.basename(input_file)}: FAILED {message}")
	print(f"Space saved: {utils.format_bytes(max(saved, 0))}")
	print("")
	return

#============================================

def main() -> None:
	args = parse_args()
	if args.crf < 0 or args.crf > 51:
		raise RuntimeError("crf must be 0..51")
	utils.check_dependency("ffmpeg")
	utils.check_dependency("ffprobe")
	files = utils.collect_files(args.paths, utils.VIDEO_EXTENSIONS,
		recursive=args.recursive)
	files = [item for item in files
		if not os.path.splitext(item)[0].endswith(OUTPUT_SUFFIX)]
	results = []
	failures = []
	for input_file in files:
		try:
			results.append(encode_file(input_file, args.crf, args.preset,
				args.replace, args.dry_run))
		except RuntimeError as exc:
			failures.append((input_file, str(exc).splitlines()[0]))
	print_summary(results, failures)
	if len(failures) > 0:
		sys.exit(1)
	return

#============================================

if __name__ == '__main__':
	main()
