#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess

#============================================

VIDEO_EXTENSIONS = ('.mkv', '.mp4', '.m4v', '.mov', '.avi', '.wmv', '.webm', '.ts', '.mpg')

#============================================

def is_quiet_mode() -> bool:
	value = os.environ.get('MEDIATIDY_QUIET', '')
	return value.strip().lower() in ('1', 'true', 'yes', 'on')

#============================================

def run_process(cmd: list, cwd: str | None = None,
	capture_output: bool = True, check: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command.

	Args:
		cmd: Command list to execute.
		cwd: Working directory.
		capture_output: Capture stdout and stderr when True.
		check: Raise RuntimeError on a non-zero exit.

	Returns:
		subprocess.CompletedProcess: Completed process.
	"""
	showcmd = shlex.join(cmd)
	if not is_quiet_mode():
		print(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, cwd=cwd, capture_output=capture_output, text=True)
	if check and proc.returncode != 0:
		stderr_text = (proc.stderr or '').strip()
		raise RuntimeError(f"command failed: {showcmd}\n{stderr_text}")
	return proc

#============================================

def check_dependency(cmd_name: str) -> None:
	if shutil.which(cmd_name) is None:
		raise RuntimeError(f"missing dependency: {cmd_name}")
	return

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def collect_files(paths: list, extensions: tuple | None = None,
	recursive: bool = False) -> list:
	"""
	Expand a list of files and directories into a sorted file list.

	Args:
		paths: File or directory paths.
		extensions: Lowercase extensions to keep, or None for all files.
		recursive: Walk directories recursively when True.

	Returns:
		list: Sorted, de-duplicated file paths.
	"""
	found = []
	for path in paths:
		if os.path.isfile(path):
			found.append(path)
			continue
		if not os.path.isdir(path):
			raise RuntimeError(f"path not found: {path}")
		if recursive:
			for dirpath, dirnames, filenames in os.walk(path):
				dirnames[:] = sorted(name for name in dirnames if not name.startswith('.'))
				for filename in filenames:
					found.append(os.path.join(dirpath, filename))
		else:
			for filename in os.listdir(path):
				filepath = os.path.join(path, filename)
				if os.path.isfile(filepath):
					found.append(filepath)
	if extensions is not None:
		found = [item for item in found
			if os.path.splitext(item)[1].lower() in extensions]
	return sorted(set(found))

#============================================

def suffixed_path(filepath: str, suffix: str, new_ext: str | None = None) -> str:
	root, ext = os.path.splitext(filepath)
	if new_ext is not None:
		ext = new_ext
	return f"{root}{suffix}{ext}"

#============================================

def format_timestamp(seconds: float) -> str:
	"""
	Format seconds as HH:MM:SS.mmm.
	"""
	millis = int(round(float(seconds) * 1000.0))
	if millis < 0:
		millis = 0
	hours, remainder = divmod(millis, 3600 * 1000)
	minutes, remainder = divmod(remainder, 60 * 1000)
	secs, millis = divmod(remainder, 1000)
	return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"

#============================================

def format_bytes(size: int) -> str:
	value = float(size)
	for unit in ('B', 'KB', 'MB', 'GB'):
		if value < 1024.0:
			return f"{value:.1f} {unit}"
		value /= 1024.0
	return f"{value:.1f} TB"

#============================================

def replace_original(original_file: str, new_file: str) -> str:
	"""
	Move new_file over original_file, keeping the new file's extension.

	Returns:
		str: Final path of the replaced file.
	"""
	root = os.path.splitext(original_file)[0]
	final_path = root + os.path.splitext(new_file)[1]
	os.replace(new_file, final_path)
	if final_path != original_file and os.path.exists(original_file):
		os.remove(original_file)
	return final_path
