#!/usr/bin/env python3

"""
Adaptive search for the start of a dead segment near the end of a video.

A dead segment is a long run of black/white frames or of one frozen frame.
Probing every second of a long file is slow (each probe decodes a frame), so
the search walks the tail of the file with a large stride first, then halves
the stride while re-centering the window on the last hit.

Once a pass has found a qualifying run it keeps walking toward the start of
the file and stops at the first miss. Short qualifying runs that lie outside
the narrowed window can be skipped; this is accepted in exchange for speed.
"""

# Standard Library
import math

# local repo modules
from mediatidylib.core import utils

#============================================

MODE_BLACK_WHITE = 'black_white'
MODE_STATIC = 'static'
MODES = (MODE_BLACK_WHITE, MODE_STATIC)

DEFAULT_MIN_LENGTHS = {
	MODE_BLACK_WHITE: 5,
	MODE_STATIC: 10,
}

MAX_STEP = 10
MIN_STEP = 1
SCAN_FLOOR_FRACTION = 0.2
MIN_TRIM_POINT = 1

#============================================

class InvalidSearchInput(RuntimeError):
	pass

#============================================

class OracleFailure(RuntimeError):
	"""A single frame could not be classified."""
	pass

#============================================

class OracleUnavailable(RuntimeError):
	"""The frame classifier cannot run at all (for example no decoder)."""
	pass

#============================================

class BlackWhiteClassifier():
	mode = MODE_BLACK_WHITE

	def __init__(self, is_black_or_white):
		self.is_black_or_white = is_black_or_white

	#============================
	def start_run(self):
		return self.is_black_or_white

#============================================

class StaticClassifier():
	"""
	Every frame of a run must hash identically to the first frame of that run.
	"""
	mode = MODE_STATIC

	def __init__(self, content_hash):
		self.content_hash = content_hash

	#============================
	def start_run(self):
		reference = None

		def check(timestamp: int) -> bool:
			nonlocal reference
			value = self.content_hash(timestamp)
			if value is None:
				return False
			if reference is None:
				reference = value
				return True
			return value == reference

		return check

#============================================

def make_classifier(mode: str, analyzer):
	"""
	Build the per-mode run classifier on top of a frame analyzer.

	Args:
		mode: MODE_BLACK_WHITE or MODE_STATIC.
		analyzer: Object with is_black_or_white(t) and content_hash(t).

	Returns:
		object: Classifier with a start_run() method.
	"""
	if mode == MODE_BLACK_WHITE:
		return BlackWhiteClassifier(analyzer.is_black_or_white)
	if mode == MODE_STATIC:
		return StaticClassifier(analyzer.content_hash)
	raise InvalidSearchInput(f"unknown classification mode: {mode}")

#============================================

def validate_search_input(duration: float, min_length: float) -> None:
	if duration is None or duration <= 0:
		raise InvalidSearchInput("duration must be positive")
	if min_length is None or min_length <= 0:
		raise InvalidSearchInput("min_length must be positive")
	if min_length >= duration:
		raise InvalidSearchInput("min_length must be shorter than duration")
	return

#============================================

class SegmentBoundaryFinder():
	def __init__(self, duration: float, min_length: int, classifier,
		max_step: int = MAX_STEP, min_step: int = MIN_STEP,
		scan_floor_fraction: float = SCAN_FLOOR_FRACTION):
		validate_search_input(duration, min_length)
		if min_step < 1 or max_step < min_step:
			raise InvalidSearchInput("steps must satisfy 1 <= min_step <= max_step")
		if scan_floor_fraction < 0 or scan_floor_fraction >= 1:
			raise InvalidSearchInput("scan_floor_fraction must be in [0, 1)")
		self.duration = float(duration)
		self.min_length = int(math.ceil(min_length))
		self.classifier = classifier
		self.max_step = int(max_step)
		self.min_step = int(min_step)
		# latest start whose run still ends inside the media
		self.scan_start = int(math.floor(self.duration - min_length))
		# never look earlier than this fraction into the media
		self.scan_end = int(math.ceil(scan_floor_fraction * self.duration))
		self.samples = []
		self.run_checks = 0

	#============================
	def run_qualifies(self, start: int) -> bool:
		check = self.classifier.start_run()
		self.run_checks += 1
		for offset in range(self.min_length):
			timestamp = start + offset
			if timestamp >= self.duration:
				return False
			if not self._sample(check, timestamp):
				return False
		return True

	#============================
	def _sample(self, check, timestamp: int) -> bool:
		try:
			qualifies = bool(check(timestamp))
		except OracleFailure:
			qualifies = False
		self.samples.append((timestamp, qualifies))
		return qualifies

	#============================
	def find_segment_adaptive(self) -> int | None:
		"""
		Coarse-to-fine descending scan.

		Returns:
			int | None: Start second of the run found, or None.
		"""
		step = self.max_step
		scan_start = self.scan_start
		scan_end = self.scan_end
		best_start = None
		while step >= self.min_step:
			found = False
			timestamp = scan_start
			while timestamp >= scan_end:
				if self.run_qualifies(timestamp):
					best_start = timestamp
					found = True
				elif found:
					break
				timestamp -= step
			if found:
				scan_start = min(best_start + step // 2, self.scan_start)
				scan_end = max(best_start - step, scan_end)
			step //= 2
		return best_start

	#============================
	def refine_segment_start(self, low: int, high: int) -> int:
		"""
		Binary search [low, high] for the smallest start that still qualifies.

		high must already qualify.
		"""
		while high - low > 1:
			mid = (low + high) // 2
			if self.run_qualifies(mid):
				high = mid
			else:
				low = mid + 1
		return high

	#============================
	def find(self, refine: bool = False) -> int | None:
		best_start = self.find_segment_adaptive()
		if best_start is None or not refine:
			return best_start
		low = max(self.scan_end, best_start - self.max_step)
		if low >= best_start:
			return best_start
		if self.run_qualifies(low):
			return low
		return self.refine_segment_start(low, best_start)

#============================================

def find_boundary(media, duration: float, min_length: int, mode: str,
	analyzer=None, refine: bool = False, max_step: int = MAX_STEP,
	min_step: int = MIN_STEP, scan_floor_fraction: float = SCAN_FLOOR_FRACTION,
	finder_log: list | None = None) -> int | None:
	"""
	Find the start second of the dead segment for one classification mode.

	Args:
		media: Media file path.
		duration: Media duration in seconds.
		min_length: Minimum run length in seconds.
		mode: MODE_BLACK_WHITE or MODE_STATIC.
		analyzer: Frame analyzer; a FrameAnalyzer for media is built when None.
		refine: Run the binary-search refinement after the coarse scan.
		max_step: Initial scan stride in seconds.
		min_step: Smallest scan stride in seconds.
		scan_floor_fraction: Fraction of the duration never scanned.
		finder_log: Optional list that receives the finder for reporting.

	Returns:
		int | None: Boundary second, or None when no run was found.
	"""
	validate_search_input(duration, min_length)
	if analyzer is None:
		from mediatidylib.media.frames import FrameAnalyzer
		analyzer = FrameAnalyzer(media)
	classifier = make_classifier(mode, analyzer)
	finder = SegmentBoundaryFinder(duration, min_length, classifier,
		max_step=max_step, min_step=min_step,
		scan_floor_fraction=scan_floor_fraction)
	if finder_log is not None:
		finder_log.append(finder)
	try:
		return finder.find(refine=refine)
	except OracleUnavailable as exc:
		if not utils.is_quiet_mode():
			print(f"WARNING: frame classifier unavailable ({exc}); no boundary for {mode}")
		return None

#============================================

def select_trim_point(black_white: int | None, static: int | None,
	min_trim_point: float = MIN_TRIM_POINT) -> int | None:
	"""
	Combine the per-mode boundaries into one trim point.

	Black/white wins ties; anything before min_trim_point is not actionable.
	"""
	if black_white is not None and (static is None or black_white <= static):
		chosen = black_white
	else:
		chosen = static
	if chosen is None or chosen < min_trim_point:
		return None
	return chosen

#============================================

def find_trim_point(media, duration: float, analyzer=None,
	min_lengths: dict | None = None, modes: tuple = MODES,
	refine: bool = False, max_step: int = MAX_STEP, min_step: int = MIN_STEP,
	scan_floor_fraction: float = SCAN_FLOOR_FRACTION,
	min_trim_point: float = MIN_TRIM_POINT) -> dict:
	"""
	Run every enabled mode and select the trim point.

	Returns:
		dict: {'boundaries': {mode: int|None}, 'trim_point': int|None,
			'finders': {mode: SegmentBoundaryFinder}}.
	"""
	if duration is None or duration <= 0:
		raise InvalidSearchInput("duration must be positive")
	if min_lengths is None:
		min_lengths = DEFAULT_MIN_LENGTHS
	if analyzer is None:
		from mediatidylib.media.frames import FrameAnalyzer
		analyzer = FrameAnalyzer(media)
	boundaries = {}
	finders = {}
	for mode in MODES:
		if mode not in modes:
			boundaries[mode] = None
			continue
		min_length = min_lengths[mode]
		if min_length >= duration:
			# media shorter than one run cannot contain one
			boundaries[mode] = None
			continue
		finder_log = []
		boundaries[mode] = find_boundary(media, duration, min_length, mode,
			analyzer=analyzer, refine=refine, max_step=max_step,
			min_step=min_step, scan_floor_fraction=scan_floor_fraction,
			finder_log=finder_log)
		finders[mode] = finder_log[0]
	trim_point = select_trim_point(boundaries[MODE_BLACK_WHITE],
		boundaries[MODE_STATIC], min_trim_point=min_trim_point)
	return {
		'boundaries': boundaries,
		'trim_point': trim_point,
		'finders': finders,
	}
