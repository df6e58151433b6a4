#!/usr/bin/env python3

"""
Shared YAML config helpers for the mediatidy tools.

Each tool keeps a small versioned config file such as:

	trim_dead_end: 1
	settings:
	  search:
	    max_step: 10

The header key guards against feeding one tool's config to another.
"""

# Standard Library
import copy
import os

# PIP3 modules
import yaml

#============================================

def coerce_bool(value, config_path: str, key_path: str) -> bool:
	"""
	Coerce a value to bool.

	Args:
		value: Raw value.
		config_path: Config file path.
		key_path: Key path string.

	Returns:
		bool: Coerced boolean.
	"""
	if isinstance(value, bool):
		return value
	if isinstance(value, int):
		return bool(value)
	if isinstance(value, str):
		normalized = value.strip().lower()
		if normalized in ("true", "yes", "1", "on"):
			return True
		if normalized in ("false", "no", "0", "off"):
			return False
	raise RuntimeError(f"config {config_path}: {key_path} must be a boolean")

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError as exc:
			raise RuntimeError(f"config {config_path}: {key_path} must be a number") from exc
	raise RuntimeError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float):
		return int(value)
	if isinstance(value, str):
		try:
			return int(float(value))
		except ValueError as exc:
			raise RuntimeError(f"config {config_path}: {key_path} must be an integer") from exc
	raise RuntimeError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, str):
		return value
	raise RuntimeError(f"config {config_path}: {key_path} must be a string")

#============================================

def load_config(config_path: str, header_key: str) -> dict:
	"""
	Load a tool config file from disk.

	Args:
		config_path: Config file path.
		header_key: Top-level key that must be set to 1.

	Returns:
		dict: Parsed config dictionary.
	"""
	with open(config_path, 'r', encoding='utf-8') as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("config file must be a mapping")
	if data.get(header_key) != 1:
		raise RuntimeError(f"config file must set {header_key}: 1")
	settings = data.get('settings', {})
	if settings is None:
		settings = {}
	if not isinstance(settings, dict):
		raise RuntimeError(f"config {config_path}: settings must be a mapping")
	data['settings'] = settings
	return data

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	text = yaml.safe_dump(config, sort_keys=False, default_flow_style=False)
	os.makedirs(os.path.dirname(config_path) or '.', exist_ok=True)
	with open(config_path, 'w', encoding='utf-8') as handle:
		handle.write(text)
	return

#============================================

def merge_settings(defaults: dict, overrides: dict, config_path: str,
	key_path: str = "settings") -> dict:
	"""
	Recursively merge override mappings over default mappings.

	Unknown keys are rejected so typos in a config file do not pass silently.

	Args:
		defaults: Default settings mapping.
		overrides: Settings mapping read from a config file.
		config_path: Config file path.
		key_path: Dotted key path used in error messages.

	Returns:
		dict: Merged settings.
	"""
	merged = copy.deepcopy(defaults)
	if overrides is None:
		return merged
	if not isinstance(overrides, dict):
		raise RuntimeError(f"config {config_path}: {key_path} must be a mapping")
	for key, value in overrides.items():
		child_path = f"{key_path}.{key}"
		if key not in defaults:
			raise RuntimeError(f"config {config_path}: unknown key {child_path}")
		if isinstance(defaults[key], dict):
			merged[key] = merge_settings(defaults[key], value, config_path, child_path)
		else:
			merged[key] = value
	return merged
