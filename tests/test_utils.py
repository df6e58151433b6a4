#!/usr/bin/env python3

# Standard Library
import os
import sys
import unittest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from mediatidylib.core import config as configlib
from mediatidylib.core import utils

#============================================

class TestFormatting(unittest.TestCase):
	def test_format_timestamp(self):
		self.assertEqual(utils.format_timestamp(0), "00:00:00.000")
		self.assertEqual(utils.format_timestamp(3725.5), "01:02:05.500")
		self.assertEqual(utils.format_timestamp(-2), "00:00:00.000")

	def test_format_bytes(self):
		self.assertEqual(utils.format_bytes(512), "512.0 B")
		self.assertEqual(utils.format_bytes(1536), "1.5 KB")
		self.assertEqual(utils.format_bytes(3 * 1024 ** 3), "3.0 GB")

	def test_suffixed_path(self):
		self.assertEqual(utils.suffixed_path("/a/b.mp4", ".trimmed"), "/a/b.trimmed.mp4")
		self.assertEqual(utils.suffixed_path("/a/b.mp4", ".hevc", new_ext=".mkv"),
			"/a/b.hevc.mkv")

#============================================

class TestQuietMode(unittest.TestCase):
	def setUp(self):
		self.saved = os.environ.pop('MEDIATIDY_QUIET', None)

	def tearDown(self):
		os.environ.pop('MEDIATIDY_QUIET', None)
		if self.saved is not None:
			os.environ['MEDIATIDY_QUIET'] = self.saved

	def test_quiet_values(self):
		self.assertFalse(utils.is_quiet_mode())
		os.environ['MEDIATIDY_QUIET'] = "yes"
		self.assertTrue(utils.is_quiet_mode())
		os.environ['MEDIATIDY_QUIET'] = "0"
		self.assertFalse(utils.is_quiet_mode())

#============================================

class TestConfigCoercion(unittest.TestCase):
	def test_coerce_bool(self):
		self.assertTrue(configlib.coerce_bool("on", "c.yaml", "k"))
		self.assertFalse(configlib.coerce_bool(0, "c.yaml", "k"))
		with self.assertRaises(RuntimeError):
			configlib.coerce_bool("maybe", "c.yaml", "k")

	def test_coerce_numbers(self):
		self.assertEqual(configlib.coerce_int("12", "c.yaml", "k"), 12)
		self.assertEqual(configlib.coerce_float("0.5", "c.yaml", "k"), 0.5)
		with self.assertRaises(RuntimeError):
			configlib.coerce_int(True, "c.yaml", "k")
		with self.assertRaises(RuntimeError):
			configlib.coerce_float("fast", "c.yaml", "k")

	def test_merge_settings_nested(self):
		defaults = {'a': {'b': 1, 'c': 2}, 'd': 3}
		merged = configlib.merge_settings(defaults, {'a': {'c': 5}}, "c.yaml")
		self.assertEqual(merged, {'a': {'b': 1, 'c': 5}, 'd': 3})
		self.assertEqual(defaults['a']['c'], 2)
		with self.assertRaisesRegex(RuntimeError, "settings.a.x"):
			configlib.merge_settings(defaults, {'a': {'x': 1}}, "c.yaml")

#============================================

def test_collect_files(tmp_path) -> None:
	(tmp_path / "a.MKV").write_bytes(b"")
	(tmp_path / "b.txt").write_bytes(b"")
	os.makedirs(tmp_path / "sub")
	(tmp_path / "sub" / "c.mp4").write_bytes(b"")
	os.makedirs(tmp_path / ".hidden")
	(tmp_path / ".hidden" / "d.mp4").write_bytes(b"")
	flat = utils.collect_files([str(tmp_path)], utils.VIDEO_EXTENSIONS)
	assert flat == [str(tmp_path / "a.MKV")]
	deep = utils.collect_files([str(tmp_path)], utils.VIDEO_EXTENSIONS, recursive=True)
	assert deep == [str(tmp_path / "a.MKV"), str(tmp_path / "sub" / "c.mp4")]

#============================================

def test_collect_files_missing_path(tmp_path) -> None:
	try:
		utils.collect_files([str(tmp_path / "nope")])
	except RuntimeError as exc:
		assert "path not found" in str(exc)
	else:
		raise AssertionError("expected RuntimeError")

