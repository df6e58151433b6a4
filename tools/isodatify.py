#!/usr/bin/env python3

"""
isodatify.py

Rename files so that dates embedded in their names read as ISO YYYY-MM-DD.

Examples:
	IMG_20200131_120000.jpg  ->  IMG_2020-01-31_120000.jpg
	party 31.01.2020.mp4     ->  party 2020-01-31.mp4
	Jan 5, 2019 notes.txt    ->  2019-01-05 notes.txt
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
from mediatidylib.core import dates
from mediatidylib.core import utils

#============================================

def parse_args() -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		description="Rewrite dates in filenames to ISO YYYY-MM-DD."
	)
	parser.add_argument(
		"paths", nargs="+",
		help="Files or directories to rename."
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

def plan_renames(files: list) -> list:
	"""
	Build (old_path, new_path) pairs for files whose names contain a date.

	Pairs whose target already exists, or is claimed by an earlier pair, get
	new_path None.
	"""
	plans = []
	claimed = set()
	for filepath in files:
		dirname, basename = os.path.split(filepath)
		new_name = dates.isodatify_name(basename)
		if new_name is None:
			continue
		new_path = os.path.join(dirname, new_name)
		if os.path.exists(new_path) or new_path in claimed:
			plans.append((filepath, None))
			continue
		claimed.add(new_path)
		plans.append((filepath, new_path))
	return plans

#============================================

def apply_renames(plans: list, dry_run: bool = False) -> dict:
	counts = {'renamed': 0, 'skipped': 0}
	for old_path, new_path in plans:
		if new_path is None:
			print(f"SKIP (target exists): {old_path}")
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
	plans = plan_renames(files)
	counts = apply_renames(plans, dry_run=args.dry_run)
	print("")
	print(f"Files checked: {len(files)}")
	print(f"{'Would rename' if args.dry_run else 'Renamed'}: {counts['renamed']}")
	print(f"Skipped: {counts['skipped']}")
	return

#============================================

if __name__ == '__main__':
	main()
