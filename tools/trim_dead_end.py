#!/usr/bin/env python3

"""
trim_dead_end.py

Find a long run of black/white frames or of one frozen frame near the end of
a video and cut the video just before it.

Two searches run per file:
- black_white: every sampled second is near-black or near-white (5 s run).
- static: every sampled second is pixel-identical to the run's first frame (10 s run).

The earlier boundary wins, black_white on ties. The cut is a stream copy, so
it lands on the nearest preceding keyframe the container allows.
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
import yaml
from tqdm import tqdm

# local repo modules
from mediatidylib.core import boundary
from mediatidylib.core import config as configlib
from mediatidylib.core import utils
from mediatidylib.media import ffmpeg_trim
from mediatidylib.media import ffprobe
from mediatidylib.media.frames import FrameAnalyzer

#============================================

TOOL_CONFIG_HEADER_KEY = "trim_dead_end"
DEFAULT_CONFIG_NAME = "trim_dead_end.config.yaml"

#============================================

def parse_args() -> argparse.Namespace:
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed CLI args.
	"""
	parser = argparse.ArgumentParser(
		description="Trim trailing black, white, or frozen segments from videos."
	)
	parser.add_argument(
		"-i", "--input", dest="inputs", action="append", default=[],
		help="Input video file or directory (repeatable)."
	)
	parser.add_argument(
		"-c", "--config", dest="config_file", default=None,
		help="Optional config YAML path (code defaults are used when omitted)."
	)
	parser.add_argument(
		"--write-default-config", dest="write_default_config", action="store_true",
		help="Write the default config (to --config or ./trim_dead_end.config.yaml) and exit."
	)
	parser.add_argument(
		"-n", "--dry-run", dest="dry_run", action="store_true",
		help="Only report trim points, do not write files."
	)
	parser.add_argument(
		"-r", "--replace", dest="replace", action="store_true", default=None,
		help="Replace the original file with the trimmed file."
	)
	parser.add_argument(
		"-s", "--suffix", dest="suffix", default=None,
		help="Filename suffix for trimmed output (default from config: .trimmed)."
	)
	parser.add_argument(
		"--refine", dest="refine", action="store_true", default=None,
		help="Run binary-search refinement after the coarse scan."
	)
	parser.add_argument(
		"--no-black-white", dest="black_white", action="store_false", default=None,
		help="Disable the black/white search."
	)
	parser.add_argument(
		"--no-static", dest="static", action="store_false", default=None,
		help="Disable the frozen-frame search."
	)
	parser.add_argument(
		"-R", "--recursive", dest="recursive", action="store_true",
		help="Walk input directories recursively."
	)
	parser.add_argument(
		"-d", "--debug", dest="debug", action="store_true",
		help="Write a YAML report and a sample plot next to each input."
	)
	parser.set_defaults(dry_run=False)
	parser.set_defaults(recursive=False)
	parser.set_defaults(debug=False)
	parser.set_defaults(write_default_config=False)
	return parser.parse_args()

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default configuration values.
	"""
	return {
		TOOL_CONFIG_HEADER_KEY: 1,
		'settings': {
			'search': {
				'max_step': boundary.MAX_STEP,
				'min_step': boundary.MIN_STEP,
				'scan_floor_fraction': boundary.SCAN_FLOOR_FRACTION,
				'refine': False,
			},
			'black_white': {
				'enabled': True,
				'min_length': boundary.DEFAULT_MIN_LENGTHS[boundary.MODE_BLACK_WHITE],
				'pixel_threshold': 32,
				'black_amount': 0.98,
				'white_luma': 245.0,
			},
			'static': {
				'enabled': True,
				'min_length': boundary.DEFAULT_MIN_LENGTHS[boundary.MODE_STATIC],
				'hash_width': 32,
				'hash_height': 18,
			},
			'output': {
				'suffix': ".trimmed",
				'replace': False,
				'min_trim_point': float(boundary.MIN_TRIM_POINT),
			},
		},
	}

#============================================

def build_settings(config: dict, config_path: str | None) -> dict:
	"""
	Normalize settings with defaults.

	Args:
		config: Raw config dictionary (or None for code defaults).
		config_path: Config file path, used in error messages.

	Returns:
		dict: Flat, validated settings.
	"""
	label = config_path if config_path is not None else "<defaults>"
	defaults = default_config()['settings']
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get('settings', {})
	merged = configlib.merge_settings(defaults, overrides, label)
	search = merged['search']
	black_white = merged['black_white']
	static = merged['static']
	output = merged['output']
	settings = {
		'max_step': configlib.coerce_int(search['max_step'], label, "settings.search.max_step"),
		'min_step': configlib.coerce_int(search['min_step'], label, "settings.search.min_step"),
		'scan_floor_fraction': configlib.coerce_float(search['scan_floor_fraction'],
			label, "settings.search.scan_floor_fraction"),
		'refine': configlib.coerce_bool(search['refine'], label, "settings.search.refine"),
		'black_white_enabled': configlib.coerce_bool(black_white['enabled'],
			label, "settings.black_white.enabled"),
		'black_white_min_length': configlib.coerce_int(black_white['min_length'],
			label, "settings.black_white.min_length"),
		'pixel_threshold': configlib.coerce_int(black_white['pixel_threshold'],
			label, "settings.black_white.pixel_threshold"),
		'black_amount': configlib.coerce_float(black_white['black_amount'],
			label, "settings.black_white.black_amount"),
		'white_luma': configlib.coerce_float(black_white['white_luma'],
			label, "settings.black_white.white_luma"),
		'static_enabled': configlib.coerce_bool(static['enabled'],
			label, "settings.static.enabled"),
		'static_min_length': configlib.coerce_int(static['min_length'],
			label, "settings.static.min_length"),
		'hash_width': configlib.coerce_int(static['hash_width'],
			label, "settings.static.hash_width"),
		'hash_height': configlib.coerce_int(static['hash_height'],
			label, "settings.static.hash_height"),
		'suffix': configlib.coerce_str(output['suffix'], label, "settings.output.suffix"),
		'replace': configlib.coerce_bool(output['replace'], label, "settings.output.replace"),
		'min_trim_point': configlib.coerce_float(output['min_trim_point'],
			label, "settings.output.min_trim_point"),
	}
	validate_settings(settings)
	return settings

#============================================

def validate_settings(settings: dict) -> None:
	if settings['min_step'] < 1:
		raise RuntimeError("min_step must be at least 1")
	if settings['max_step'] < settings['min_step']:
		raise RuntimeError("max_step must be >= min_step")
	if settings['scan_floor_fraction'] < 0 or settings['scan_floor_fraction'] >= 1:
		raise RuntimeError("scan_floor_fraction must be in [0, 1)")
	if settings['black_white_min_length'] <= 0:
		raise RuntimeError("black_white min_length must be positive")
	if settings['static_min_length'] <= 0:
		raise RuntimeError("static min_length must be positive")
	if settings['pixel_threshold'] < 0 or settings['pixel_threshold'] > 255:
		raise RuntimeError("pixel_threshold must be 0..255")
	if settings['black_amount'] <= 0 or settings['black_amount'] > 1:
		raise RuntimeError("black_amount must be in (0, 1]")
	if settings['white_luma'] < 0 or settings['white_luma'] > 255:
		raise RuntimeError("white_luma must be 0..255")
	if settings['hash_width'] <= 0 or settings['hash_height'] <= 0:
		raise RuntimeError("hash size must be positive")
	if not settings['black_white_enabled'] and not settings['static_enabled']:
		raise RuntimeError("at least one of black_white or static must be enabled")
	if settings['suffix'] == "" and not settings['replace']:
		raise RuntimeError("suffix must be non-empty unless replacing")
	return

#============================================

def apply_cli_overrides(settings: dict, args: argparse.Namespace) -> dict:
	if args.replace is not None:
		settings['replace'] = args.replace
	if args.suffix is not None:
		settings['suffix'] = args.suffix
	if args.refine is not None:
		settings['refine'] = args.refine
	if args.black_white is not None:
		settings['black_white_enabled'] = args.black_white
	if args.static is not None:
		settings['static_enabled'] = args.static
	validate_settings(settings)
	return settings

#============================================

def enabled_modes(settings: dict) -> tuple:
	modes = []
	if settings['black_white_enabled']:
		modes.append(boundary.MODE_BLACK_WHITE)
	if settings['static_enabled']:
		modes.append(boundary.MODE_STATIC)
	return tuple(modes)

#============================================

def search_trim_point(input_file: str, duration: float, settings: dict,
	analyzer=None) -> dict:
	"""
	Run the boundary searches for one file.

	Args:
		input_file: Video path.
		duration: Probed duration in seconds.
		settings: Normalized settings.
		analyzer: Optional frame analyzer (a FrameAnalyzer is built when None).

	Returns:
		dict: Result from boundary.find_trim_point().
	"""
	if analyzer is None:
		analyzer = FrameAnalyzer(input_file,
			pixel_threshold=settings['pixel_threshold'],
			black_amount=settings['black_amount'],
			white_luma=settings['white_luma'],
			hash_size=(settings['hash_width'], settings['hash_height']))
	min_lengths = {
		boundary.MODE_BLACK_WHITE: settings['black_white_min_length'],
		boundary.MODE_STATIC: settings['static_min_length'],
	}
	return boundary.find_trim_point(input_file, duration, analyzer=analyzer,
		min_lengths=min_lengths, modes=enabled_modes(settings),
		refine=settings['refine'], max_step=settings['max_step'],
		min_step=settings['min_step'],
		scan_floor_fraction=settings['scan_floor_fraction'],
		min_trim_point=settings['min_trim_point'])

#============================================

def output_path_for(input_file: str, settings: dict) -> str:
	return utils.suffixed_path(input_file, settings['suffix'] or ".trimmed")

#============================================

def build_report(input_file: str, duration: float, search: dict,
	output_file: str | None) -> dict:
	report = {
		'input': input_file,
		'duration': round(float(duration), 3),
		'trim_point': search['trim_point'],
		'output': output_file,
		'modes': {},
	}
	for mode, found in search['boundaries'].items():
		finder = search['finders'].get(mode)
		entry = {'boundary': found}
		if finder is not None:
			entry['min_length'] = finder.min_length
			entry['run_checks'] = finder.run_checks
			entry['samples'] = len(finder.samples)
			entry['scan_window'] = [finder.scan_end, finder.scan_start]
		report['modes'][mode] = entry
	return report

#============================================

def write_report(report_path: str, report: dict) -> None:
	text = yaml.safe_dump(report, sort_keys=False)
	with open(report_path, 'w', encoding='utf-8') as handle:
		handle.write(text)
	return

#============================================

def write_debug_plot(output_file: str, search: dict, duration: float) -> None:
	"""
	Plot every sampled timestamp per mode, green for qualifying frames.

	Args:
		output_file: Output plot path.
		search: Result from search_trim_point().
		duration: Media duration in seconds.
	"""
	finders = search['finders']
	if len(finders) == 0:
		return
	try:
		import matplotlib
		matplotlib.use("Agg")
		import matplotlib.pyplot as pyplot
	except ImportError as exc:
		raise RuntimeError("matplotlib is required for --debug plots") from exc
	plotter = pyplot
	plotter.figure(figsize=(12, 3))
	labels = []
	for row, mode in enumerate(sorted(finders)):
		finder = finders[mode]
		labels.append(mode)
		hits = [t for t, ok in finder.samples if ok]
		misses = [t for t, ok in finder.samples if not ok]
		plotter.scatter(hits, [row] * len(hits), color='green', marker='|', s=200)
		plotter.scatter(misses, [row] * len(misses), color='red', marker='|', s=200)
		found = search['boundaries'].get(mode)
		if found is not None:
			plotter.plot([found], [row], marker='v', color='black')
	if search['trim_point'] is not None:
		plotter.axvline(search['trim_point'], color='blue', linestyle='--', linewidth=1.0)
	plotter.xlim(0, duration)
	plotter.yticks(range(len(labels)), labels)
	plotter.xlabel("Seconds")
	plotter.title("Sampled frames")
	plotter.tight_layout()
	plotter.savefig(output_file)
	plotter.close()
	return

#============================================

def process_file(input_file: str, settings: dict, dry_run: bool = False,
	debug: bool = False) -> dict:
	"""
	Search and (unless dry_run) trim one file.

	Returns:
		dict: Report mapping for the file.
	"""
	utils.ensure_file_exists(input_file)
	duration = ffprobe.probe_duration_seconds(input_file)
	search = search_trim_point(input_file, duration, settings)
	output_file = None
	trim_point = search['trim_point']
	if trim_point is not None and not dry_run:
		output_file = ffmpeg_trim.trim_to_boundary(input_file,
			output_path_for(input_file, settings), trim_point)
		if settings['replace']:
			output_file = utils.replace_original(input_file, output_file)
	report = build_report(input_file, duration, search, output_file)
	if debug:
		write_report(f"{input_file}.trim_dead_end.report.yaml", report)
		write_debug_plot(f"{input_file}.trim_dead_end.png", search, duration)
	return report

#============================================

def print_file_result(report: dict) -> None:
	trim_point = report['trim_point']
	name = os.path.basename(report['input'])
	if trim_point is None:
		print(f"{name}: no valid trim point detected")
		return
	duration = report['duration']
	removed = duration - trim_point
	line = (f"{name}: trim at {utils.format_timestamp(trim_point)}"
		f" (removes {removed:.1f}s of {duration:.1f}s)")
	if report['output'] is not None:
		line += f" -> {os.path.basename(report['output'])}"
	print(line)
	return

#============================================

def print_summary(reports: list, failures: list, dry_run: bool) -> None:
	trimmed = [report for report in reports if report['trim_point'] is not None]
	removed_total = sum(report['duration'] - report['trim_point'] for report in trimmed)
	print("")
	print("Trim Dead End Summary")
	print(f"Files scanned: {len(reports) + len(failures)}")
	label = "Trim points found" if dry_run else "Files trimmed"
	print(f"{label}: {len(trimmed)}")
	print(f"No trim point: {len(reports) - len(trimmed)}")
	print(f"Failed: {len(failures)}")
	print(f"Seconds removed: {removed_total:.1f}")
	for input_file, message in failures:
		print(f"  FAILED {input_file}: {message}")
	print("")
	return

#============================================

def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	if args.write_default_config:
		config_path = args.config_file or DEFAULT_CONFIG_NAME
		configlib.write_config_file(config_path, default_config())
		print(f"Wrote default config: {config_path}")
		return
	if len(args.inputs) == 0:
		raise RuntimeError("at least one --input is required")
	config = None
	if args.config_file is not None:
		config = configlib.load_config(args.config_file, TOOL_CONFIG_HEADER_KEY)
	settings = build_settings(config, args.config_file)
	settings = apply_cli_overrides(settings, args)
	utils.check_dependency("ffmpeg")
	utils.check_dependency("ffprobe")
	input_files = utils.collect_files(args.inputs, utils.VIDEO_EXTENSIONS,
		recursive=args.recursive)
	suffix = settings['suffix']
	if suffix:
		# skip outputs of earlier runs
		input_files = [item for item in input_files
			if not os.path.splitext(item)[0].endswith(suffix)]
	reports = []
	failures = []
	quiet = utils.is_quiet_mode()
	for input_file in tqdm(input_files, desc="trim", disable=quiet or len(input_files) < 2):
		try:
			report = process_file(input_file, settings, dry_run=args.dry_run,
				debug=args.debug)
		except RuntimeError as exc:
			failures.append((input_file, str(exc).splitlines()[0]))
			continue
		reports.append(report)
		if not quiet:
			print_file_result(report)
	print_summary(reports, failures, args.dry_run)
	if len(failures) > 0:
		sys.exit(1)
	return

#============================================

if __name__ == '__main__':
	main()
