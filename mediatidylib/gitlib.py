#!/usr/bin/env python3

#python wrapper for git pull/fetch over many repositories

import os
from mediatidylib.core import utils

#============================================

STATUS_UPDATED = 'updated'
STATUS_UP_TO_DATE = 'up-to-date'
STATUS_FAILED = 'failed'

#============================================

def is_git_repo(path: str) -> bool:
	return os.path.exists(os.path.join(path, '.git'))

#============================================

def find_repos(root: str, max_depth: int = 2) -> list:
	"""
	Find git working trees under root, not descending into found repos.

	Args:
		root: Directory to search.
		max_depth: How many directory levels below root to search.

	Returns:
		list: Sorted repository paths.
	"""
	if not os.path.isdir(root):
		raise RuntimeError(f"directory not found: {root}")
	repos = []
	pending = [(os.path.abspath(root), 0)]
	while len(pending) > 0:
		path, depth = pending.pop()
		if is_git_repo(path):
			repos.append(path)
			continue
		if depth >= max_depth:
			continue
		try:
			names = os.listdir(path)
		except PermissionError:
			continue
		for name in names:
			if name.startswith('.'):
				continue
			child = os.path.join(path, name)
			if os.path.isdir(child) and not os.path.islink(child):
				pending.append((child, depth + 1))
	return sorted(repos)

#============================================

def head_commit(repo: str) -> str | None:
	proc = utils.run_process(["git", "-C", repo, "rev-parse", "HEAD"], check=False)
	if proc.returncode != 0:
		return None
	return proc.stdout.strip()

#============================================

def pull_repo(repo: str) -> dict:
	"""
	Fast-forward pull one repository.

	Returns:
		dict: {'repo', 'status', 'detail'}.
	"""
	before = head_commit(repo)
	proc = utils.run_process(["git", "-C", repo, "pull", "--ff-only"], check=False)
	if proc.returncode != 0:
		detail = (proc.stderr or proc.stdout).strip().splitlines()
		return {
			'repo': repo,
			'status': STATUS_FAILED,
			'detail': detail[-1] if len(detail) > 0 else f"exit {proc.returncode}",
		}
	after = head_commit(repo)
	if before != after:
		detail = f"{(before or '')[:8]}..{(after or '')[:8]}"
		return {'repo': repo, 'status': STATUS_UPDATED, 'detail': detail}
	return {'repo': repo, 'status': STATUS_UP_TO_DATE, 'detail': ''}

#============================================

def fetch_repo(repo: str) -> dict:
	proc = utils.run_process(["git", "-C", repo, "fetch", "--all", "--prune"], check=False)
	output = ((proc.stdout or '') + (proc.stderr or '')).strip()
	if proc.returncode != 0:
		lines = output.splitlines()
		return {
			'repo': repo,
			'status': STATUS_FAILED,
			'detail': lines[-1] if len(lines) > 0 else f"exit {proc.returncode}",
		}
	# git fetch only prints ref updates; "Fetching <remote>" lines come from --all
	updates = [line for line in output.splitlines()
		if line.strip() != '' and not line.startswith('Fetching ')]
	if len(updates) > 0:
		return {'repo': repo, 'status': STATUS_UPDATED, 'detail': f"{len(updates)} ref line(s)"}
	return {'repo': repo, 'status': STATUS_UP_TO_DATE, 'detail': ''}
