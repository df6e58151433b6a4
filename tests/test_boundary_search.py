#!/usr/bin/env python3

"""
Unit tests for the adaptive dead-segment boundary search.
"""

# Standard Library
import os
import random
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from mediatidylib.core import boundary

#============================================

class FakeAnalyzer():
	"""
	In-memory oracle driven by literal timestamp tables.
	"""
	def __init__(self, black=None, hashes=None, failures=None, unavailable=False):
		self.black = set(black or [])
		self.hashes = dict(hashes or {})
		self.failures = set(failures or [])
		self.unavailable = unavailable
		self.calls = []

	def is_black_or_white(self, timestamp):
		self.calls.append(timestamp)
		if self.unavailable:
			raise boundary.OracleUnavailable("missing dependency: ffmpeg")
		if timestamp in self.failures:
			raise boundary.OracleFailure(f"bad sample at {timestamp}")
		return timestamp in self.black

	def content_hash(self, timestamp):
		self.calls.append(timestamp)
		if self.unavailable:
			raise boundary.OracleUnavailable("missing dependency: ffmpeg")
		if timestamp in self.failures:
			raise boundary.OracleFailure(f"bad sample at {timestamp}")
		return self.hashes.get(timestamp, f"frame-{timestamp}")

#============================================

def _bw(duration, min_length, analyzer, **kwargs):
	return boundary.find_boundary("clip.mkv", duration, min_length,
		boundary.MODE_BLACK_WHITE, analyzer=analyzer, **kwargs)

#============================================

def _static(duration, min_length, analyzer, **kwargs):
	return boundary.find_boundary("clip.mkv", duration, min_length,
		boundary.MODE_STATIC, analyzer=analyzer, **kwargs)

#============================================

def test_black_tail_found_at_run_start() -> None:
	"""
	A black tail covering [100, 120) is found at 100.
	"""
	analyzer = FakeAnalyzer(black=range(100, 120))
	result = _bw(120, 5, analyzer)
	assert result == 100
	assert boundary.select_trim_point(result, None) == 100

#============================================

def test_nothing_qualifies_returns_none() -> None:
	analyzer = FakeAnalyzer()
	assert _bw(20, 10, analyzer) is None
	assert _static(20, 10, analyzer) is None
	assert boundary.select_trim_point(None, None) is None

#============================================

def test_uniform_window_returns_scan_floor() -> None:
	"""
	When the whole file is black the result is the earliest in-window second.
	"""
	analyzer = FakeAnalyzer(black=range(0, 120))
	result = _bw(120, 5, analyzer)
	# scan floor is ceil(0.2 * 120)
	assert result == 24

#============================================

def test_minimal_run_flush_against_scan_floor() -> None:
	"""
	A run of exactly min_length starting at the scan floor is found.
	"""
	analyzer = FakeAnalyzer(black=range(20, 25))
	assert _bw(100, 5, analyzer) == 20

#============================================

def test_run_before_scan_floor_is_ignored() -> None:
	analyzer = FakeAnalyzer(black=range(5, 15))
	assert _bw(100, 5, analyzer) is None

#============================================

def test_search_is_idempotent() -> None:
	analyzer = FakeAnalyzer(black=list(range(61, 75)) + list(range(90, 130)))
	first = _bw(130, 5, analyzer)
	second = _bw(130, 5, analyzer)
	assert first == second
	assert first == 90

#============================================

def test_coarse_scan_samples_far_fewer_runs_than_exhaustive() -> None:
	analyzer = FakeAnalyzer(black=range(3000, 3600))
	finder = boundary.SegmentBoundaryFinder(3600, 5,
		boundary.make_classifier(boundary.MODE_BLACK_WHITE, analyzer))
	assert finder.find() == 3000
	exhaustive_runs = finder.scan_start - finder.scan_end + 1
	assert finder.run_checks < exhaustive_runs // 5

#============================================

def test_random_tables_respect_window_and_run_invariants() -> None:
	"""
	Any reported boundary lies in the scan window and starts a real run.
	"""
	rng = random.Random(1234)
	for _ in range(200):
		duration = rng.uniform(15.0, 400.0)
		min_length = rng.randint(1, 12)
		if min_length >= duration:
			continue
		black = set()
		for _ in range(rng.randint(0, 4)):
			start = rng.randint(0, int(duration))
			length = rng.randint(1, 60)
			black.update(range(start, start + length))
		analyzer = FakeAnalyzer(black=black)
		classifier = boundary.make_classifier(boundary.MODE_BLACK_WHITE, analyzer)
		finder = boundary.SegmentBoundaryFinder(duration, min_length, classifier)
		result = finder.find()
		if result is None:
			continue
		assert finder.scan_end <= result <= finder.scan_start
		assert result + min_length <= duration
		assert all(t in black for t in range(result, result + min_length))

#============================================

def test_static_run_found_at_first_frozen_frame() -> None:
	hashes = {t: "frozen" for t in range(60, 90)}
	analyzer = FakeAnalyzer(hashes=hashes)
	assert _static(90, 10, analyzer) == 60

#============================================

def test_static_run_needs_identity_with_its_first_frame() -> None:
	"""
	A changed first frame moves the boundary one second later.
	"""
	hashes = {t: "frozen" for t in range(60, 90)}
	hashes[60] = "title"
	analyzer = FakeAnalyzer(hashes=hashes)
	assert _static(90, 10, analyzer) == 61

#============================================

def test_static_classifier_resets_reference_per_run() -> None:
	classifier = boundary.StaticClassifier({0: "a", 1: "a", 2: "b", 3: "b"}.get)
	check = classifier.start_run()
	assert check(0) is True
	assert check(1) is True
	assert check(2) is False
	check = classifier.start_run()
	assert check(2) is True
	assert check(3) is True

#============================================

def test_static_classifier_rejects_missing_hash() -> None:
	classifier = boundary.StaticClassifier(lambda timestamp: None)
	check = classifier.start_run()
	assert check(0) is False

#============================================

def test_single_oracle_failure_does_not_abort_search() -> None:
	analyzer = FakeAnalyzer(black=range(100, 120), failures={110})
	assert _bw(120, 5, analyzer) == 100

#============================================

def test_unavailable_oracle_reports_no_boundary() -> None:
	analyzer = FakeAnalyzer(black=range(100, 120), unavailable=True)
	assert _bw(120, 5, analyzer) is None
	assert _static(120, 10, analyzer) is None

#============================================

@pytest.mark.parametrize("duration, min_length", [
	(0, 5),
	(-3.0, 5),
	(120, 0),
	(120, -1),
	(10, 10),
	(10, 12),
])
def test_invalid_input_rejected_before_scanning(duration, min_length) -> None:
	analyzer = FakeAnalyzer(black=range(0, 200))
	with pytest.raises(boundary.InvalidSearchInput):
		_bw(duration, min_length, analyzer)
	assert analyzer.calls == []

#============================================

def test_unknown_mode_rejected() -> None:
	with pytest.raises(boundary.InvalidSearchInput):
		boundary.find_boundary("clip.mkv", 120, 5, "loud", analyzer=FakeAnalyzer())

#============================================

def test_refine_segment_start_binary_search() -> None:
	analyzer = FakeAnalyzer(black=range(100, 130))
	classifier = boundary.make_classifier(boundary.MODE_BLACK_WHITE, analyzer)
	finder = boundary.SegmentBoundaryFinder(130, 5, classifier)
	assert finder.refine_segment_start(90, 110) == 100

#============================================

def test_refine_keeps_adaptive_result() -> None:
	analyzer = FakeAnalyzer(black=range(100, 120))
	assert _bw(120, 5, analyzer, refine=True) == 100

#============================================

@pytest.mark.parametrize("black_white, static, expected", [
	(50, 40, 40),
	(40, 50, 40),
	(45, 45, 45),
	(None, 40, 40),
	(50, None, 50),
	(None, None, None),
	(0, 40, None),
	(None, 0, None),
])
def test_select_trim_point(black_white, static, expected) -> None:
	assert boundary.select_trim_point(black_white, static) == expected

#============================================

def test_find_trim_point_prefers_earlier_static_run() -> None:
	"""
	A freeze at 90 that turns black at 100 trims at 90.
	"""
	hashes = {t: "freeze" for t in range(90, 120)}
	analyzer = FakeAnalyzer(black=range(100, 120), hashes=hashes)
	result = boundary.find_trim_point("clip.mkv", 120, analyzer=analyzer)
	assert result['boundaries'][boundary.MODE_BLACK_WHITE] == 100
	assert result['boundaries'][boundary.MODE_STATIC] == 90
	assert result['trim_point'] == 90

#============================================

def test_find_trim_point_skips_modes_longer_than_media() -> None:
	analyzer = FakeAnalyzer(black=range(0, 8))
	result = boundary.find_trim_point("clip.mkv", 8, analyzer=analyzer)
	assert result['boundaries'][boundary.MODE_STATIC] is None
	assert boundary.MODE_STATIC not in result['finders']

#============================================

def test_find_trim_point_honors_disabled_modes() -> None:
	hashes = {t: "freeze" for t in range(90, 120)}
	analyzer = FakeAnalyzer(black=range(100, 120), hashes=hashes)
	result = boundary.find_trim_point("clip.mkv", 120, analyzer=analyzer,
		modes=(boundary.MODE_BLACK_WHITE,))
	assert result['boundaries'][boundary.MODE_STATIC] is None
	assert result['trim_point'] == 100
