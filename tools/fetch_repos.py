#!/usr/bin/env python3

"""
fetch_repos.py

Pull (or fetch) every git repository found under one or more directories and
print what changed.
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

# PIP3 modules
from tqdm import tqdm

# local repo modules
from mediatidylib import gitlib
from mediatidylib.core import utils

#============================================

def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed CLI args.
	"""
	parser = argparse.ArgumentParser(
		description="Pull or fetch all git repositories under a directory."
	)
	parser.add_argument(
		"roots", nargs="*", default=["."],
		help="Directories to search (default: current directory)."
	)
	parser.add_argument(
		"-f", "--fetch-only", dest="fetch_only", action="store_true",
		help="Run 'git fetch --all --prune' instead of 'git pull --ff-only'."
	)
	parser.add_argument(
		"-m", "--max-depth", dest="max_depth", type=int, default=2,
		help="Directory levels to search below each root."
	)
	parser.set_defaults(fetch_only=False)
	return parser.parse_args()

#============================================

def discover(roots: list, max_depth: int) -> list:
	repos = []
	for root in roots:
		repos.extend(gitlib.find_repos(root, max_depth=max_depth))
	return sorted(set(repos))

#============================================

def update_repos(repos: list, fetch_only: bool = False) -> list:
	results = []
	action = gitlib.fetch_repo if fetch_only else gitlib.pull_repo
	quiet = utils.is_quiet_mode()
	for repo in tqdm(repos, desc="fetch" if fetch_only else "pull",
		disable=quiet or len(repos) < 2):
		results.append(action(repo))
	return results

#============================================

def print_summary(results: list) -> None:
	print("")
	print("Fetch Repos Summary")
	if len(results) == 0:
		print("No repositories found")
		print("")
		return
	width = max(len(os.path.basename(item['repo'])) for item in results)
	for item in results:
		name = os.path.basename(item['repo'])
		line = f"  {name:<{width}}  {item['status']:<10}"
		if item['detail']:
			line += f"  {item['detail']}"
		print(line.rstrip())
	counts = {}
	for item in results:
		counts[item['status']] = counts.get(item['status'], 0) + 1
	print(f"Updated: {counts.get(gitlib.STATUS_UPDATED, 0)}"
		f" | Up to date: {counts.get(gitlib.STATUS_UP_TO_DATE, 0)}"
		f" | Failed: {counts.get(gitlib.STATUS_FAILED, 0)}")
	print("")
	return

#============================================

def main() -> None:
	args = parse_args()
	utils.check_dependency("git")
	if args.max_depth < 0:
		raise RuntimeError("max_depth must be non-negative")
	repos = discover(args.roots, args.max_depth)
	results = update_repos(repos, fetch_only=args.fetch_only)
	print_summary(results)
	if any(item['status'] == gitlib.STATUS_FAILED for item in results):
		sys.exit(1)
	return

#============================================

if __name__ == '__main__':
	main()
