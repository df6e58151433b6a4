#!/usr/bin/env python3

"""
datename.py

Rename files to YYYY-MM-DD_HH-MM-SS<ext> from their capture time (EXIF) or
modification time.
"""

# Standard Library
import argparse
import datetime
import os
import sys

script_dir = os.path.dirname(os.path.abspath(__file__))
repo_root = script_dir
if os.path.basename(script_dir) == "tools":
	repo_root = os.path.dirname(script_dir)
if repo_root not in sys.path:
	sys.path.insert(0, repo_root)

# PIP3 modules
from PIL import Image

# local repo modules
from mediatidylib.core import dates
from mediatidylib.core import utils

#============================================

EXIF_IFD_POINTER = 0x8769
EXIF_DATETIME_ORIGINAL = 36867
EXIF_DATETIME = 306
SOURCES = ('auto', 'exif', 'mtime')

#============================================

def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Rename files to their capture or modification timestamp."
	)
	parser.add_argument(
		"paths", nargs="+",
		help="Files or directories to rename."
	)
	parser.add_argument(
		"-s", "--source", dest="source", choices=SOURCES, default='auto',
		help="Timestamp source: exif, mtime, or auto (exif then mtime)."
	)
	parser.add_argument(
		"-n", "--dry-run", dest="dry_run", action="store_true",
		help="Print planned renames without renaming."
	)
	parser.add_argument(
		"-R", "--recursive", dest="recursive", action="store_true",
		help="Walk directories recursively."
	)
	parser.set_defaults(dry_run=False)
	parser.set_defaults(recursive=False)
	return parser.parse_args()

#============================================

def parse_exif_datetime(value) -> datetime.datetime | None:
	if value is None:
		return None
	text = str(value).strip().rstrip('\x00')
	try:
		return datetime.datetime.strptime(text, '%Y:%m:%d %H:%M:%S')
	except ValueError:
		return None

#============================================

def exif_datetime(filepath: str) -> datetime.datetime | None:
	"""
	Read the EXIF capture time of an image.

	Returns:
		datetime.datetime | None: Capture time, or None for non-images or
			images without a usable timestamp.
	"""
	try:
		with Image.open(filepath) as image:
			exif = image.getexif()
	except OSError:
		return None
	original = exif.get_ifd(EXIF_IFD_POINTER).get(EXIF_DATETIME_ORIGINAL)
	moment = parse_exif_datetime(original)
	if moment is None:
		moment = parse_exif_datetime(exif.get(EXIF_DATETIME))
	return moment

#============================================

def mtime_datetime(filepath: str) -> datetime.datetime:
	return datetime.datetime.fromtimestamp(os.path.getmtime(filepath))

#============================================

def file_datetime(filepath: str, source: str) -> datetime.datetime | None:
	if source not in SOURCES:
		raise RuntimeError(f"unknown timestamp source: {source}")
	if source in ('auto', 'exif'):
		moment = exif_datetime(filepath)
		if moment is not None or source == 'exif':
			return moment
	return mtime_datetime(filepath)

#============================================

def plan_renames(files: list, source: str) -> list:
	"""
	Build (old_path, new_path) pairs, resolving collisions with -N suffixes.

	Files already carrying their target name map to themselves and are
	dropped from the plan.
	"""
	plans = []
	claimed = set()
	for filepath in files:
		moment = file_datetime(filepath, source)
		if moment is None:
			plans.append((filepath, None))
			continue
		dirname, basename = os.path.split(filepath)
		ext = os.path.splitext(basename)[1]
		target = os.path.join(dirname, dates.timestamp_name(moment, ext))
		if target == filepath:
			continue
		root, target_ext = os.path.splitext(target)
		candidate = target
		index = 1
		while os.path.exists(candidate) or candidate in claimed:
			if candidate == filepath:
				break
			candidate = f"{root}-{index}{target_ext}"
			index += 1
		if candidate == filepath:
			continue
		claimed.add(candidate)
		plans.append((filepath, candidate))
	return plans

#============================================

def apply_renames(plans: list, dry_run: bool = False) -> dict:
	counts = {'renamed': 0, 'skipped': 0}
	for old_path, new_path in plans:
		if new_path is None:
			print(f"SKIP (no timestamp): {old_path}")
			counts['skipped'] += 1
			continue
		prefix = "WOULD RENAME" if dry_run else "RENAME"
		if not utils.is_quiet_mode():
			print(f"{prefix}: {os.path.basename(old_path)} -> {os.path.basename(new_path)}")
		if not dry_run:
			os.rename(old_path, new_path)
		counts['renamed'] += 1
	return counts

#============================================

def main() -> None:
	args = parse_args()
	files = utils.collect_files(args.paths, recursive=args.recursive)
	plans = plan_renames(files, args.source)
	counts = apply_renames(plans, dry_run=args.dry_run)
	print("")
	print(f"Files checked: {len(files)}")
	print(f"{'Would rename' if args.dry_run else 'Renamed'}: {counts['renamed']}")
	print(f"Skipped: {counts['skipped']}")
	return

#============================================

if __name__ == '__main__':
	main()
