#!/usr/bin/env python3

"""
Frame classification backed by ffmpeg single-frame grabs.

FrameAnalyzer answers the two questions the boundary search asks about a
timestamp: is the frame black or white, and what is its content hash.
Each timestamp is decoded once; both answers are cached.
"""

# Standard Library
import hashlib
import io
import subprocess

# PIP3 modules
import numpy
from PIL import Image

# local repo modules
from mediatidylib.core.boundary import OracleFailure
from mediatidylib.core.boundary import OracleUnavailable

#============================================

# same defaults as the ffmpeg blackframe filter
BLACK_PIXEL_THRESHOLD = 32
BLACK_AMOUNT = 0.98
WHITE_LUMA = 245.0
HASH_SIZE = (32, 18)
GRAB_TIMEOUT_SECONDS = 60.0

#============================================

def classify_black_or_white(gray: numpy.ndarray,
	pixel_threshold: int = BLACK_PIXEL_THRESHOLD,
	black_amount: float = BLACK_AMOUNT,
	white_luma: float = WHITE_LUMA) -> bool:
	"""
	Decide whether a grayscale frame is near-black or near-white.

	Args:
		gray: 2D uint8 luma array.
		pixel_threshold: Luma at or below which a pixel counts as black.
		black_amount: Fraction of black pixels needed for a black frame.
		white_luma: Average luma above which the frame counts as white.

	Returns:
		bool: True for a black or white frame.
	"""
	if gray.size == 0:
		raise OracleFailure("empty frame")
	black_fraction = float(numpy.count_nonzero(gray <= pixel_threshold)) / float(gray.size)
	if black_fraction >= black_amount:
		return True
	mean_luma = float(gray.mean())
	return mean_luma > white_luma

#============================================

def hash_gray_image(image: Image.Image, hash_size: tuple = HASH_SIZE) -> str:
	small = image.convert('L').resize(hash_size, resample=Image.BILINEAR)
	return hashlib.sha1(small.tobytes()).hexdigest()

#============================================

class FrameAnalyzer():
	def __init__(self, media: str, pixel_threshold: int = BLACK_PIXEL_THRESHOLD,
		black_amount: float = BLACK_AMOUNT, white_luma: float = WHITE_LUMA,
		hash_size: tuple = HASH_SIZE, ffmpeg_exe: str = "ffmpeg",
		timeout: float = GRAB_TIMEOUT_SECONDS):
		self.media = media
		self.pixel_threshold = pixel_threshold
		self.black_amount = black_amount
		self.white_luma = white_luma
		self.hash_size = tuple(hash_size)
		self.ffmpeg_exe = ffmpeg_exe
		self.timeout = timeout
		self.decode_count = 0
		self._cache = {}

	#============================
	def is_black_or_white(self, timestamp: float) -> bool:
		return self._classify(timestamp)['black_or_white']

	#============================
	def content_hash(self, timestamp: float) -> str:
		return self._classify(timestamp)['hash']

	#============================
	def _classify(self, timestamp: float) -> dict:
		key = float(timestamp)
		cached = self._cache.get(key)
		if cached is None:
			try:
				image = self.grab_frame(key)
				gray = numpy.asarray(image, dtype=numpy.uint8)
				cached = {
					'black_or_white': classify_black_or_white(gray,
						self.pixel_threshold, self.black_amount, self.white_luma),
					'hash': hash_gray_image(image, self.hash_size),
				}
			except OracleFailure as exc:
				cached = {'error': str(exc)}
			self._cache[key] = cached
		if 'error' in cached:
			raise OracleFailure(cached['error'])
		return cached

	#============================
	def grab_frame(self, timestamp: float) -> Image.Image:
		"""
		Decode the frame at timestamp as a grayscale PIL image.
		"""
		cmd = [
			self.ffmpeg_exe, "-hide_banner", "-loglevel", "error", "-nostdin",
			"-ss", f"{timestamp:.3f}",
			"-i", self.media,
			"-frames:v", "1",
			"-an", "-sn",
			"-f", "image2pipe",
			"-vcodec", "png",
			"-",
		]
		self.decode_count += 1
		try:
			proc = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
		except FileNotFoundError as exc:
			raise OracleUnavailable(f"missing dependency: {self.ffmpeg_exe}") from exc
		except subprocess.TimeoutExpired as exc:
			raise OracleFailure(f"frame grab timed out at {timestamp:.3f}s") from exc
		if proc.returncode != 0:
			stderr_text = proc.stderr.decode('utf-8', 'replace').strip()
			raise OracleFailure(f"frame grab failed at {timestamp:.3f}s: {stderr_text}")
		if len(proc.stdout) == 0:
			raise OracleFailure(f"no frame decoded at {timestamp:.3f}s")
		try:
			image = Image.open(io.BytesIO(proc.stdout))
			image.load()
		except OSError as exc:
			raise OracleFailure(f"undecodable frame at {timestamp:.3f}s") from exc
		return image.convert('L')
