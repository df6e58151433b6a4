#!/usr/bin/env python3

"""
Find calendar dates embedded in filenames and rewrite them as ISO dates.
"""

# Standard Library
import datetime
import re

#============================================

MONTH_NAMES = {
	'jan': 1, 'january': 1,
	'feb': 2, 'february': 2,
	'mar': 3, 'march': 3,
	'apr': 4, 'april': 4,
	'may': 5,
	'jun': 6, 'june': 6,
	'jul': 7, 'july': 7,
	'aug': 8, 'august': 8,
	'sep': 9, 'sept': 9, 'september': 9,
	'oct': 10, 'october': 10,
	'nov': 11, 'november': 11,
	'dec': 12, 'december': 12,
}

_MONTH_ALT = '|'.join(sorted(MONTH_NAMES, key=len, reverse=True))

# order matters: the first pattern with a valid date wins
DATE_PATTERNS = (
	('ymd', re.compile(r'(?<!\d)(?P<y>(?:19|20)\d{2})[-_.](?P<m>\d{1,2})[-_.](?P<d>\d{1,2})(?!\d)')),
	('ymd_compact', re.compile(r'(?<!\d)(?P<y>(?:19|20)\d{2})(?P<m>\d{2})(?P<d>\d{2})(?!\d)')),
	('dmy', re.compile(r'(?<!\d)(?P<d>\d{1,2})[-_.](?P<m>\d{1,2})[-_.](?P<y>(?:19|20)\d{2})(?!\d)')),
	('month_day_year', re.compile(
		r'(?<![A-Za-z])(?P<mon>' + _MONTH_ALT + r')\.?[ _-]?(?P<d>\d{1,2})(?:st|nd|rd|th)?,?[ _-]?(?P<y>(?:19|20)\d{2})(?!\d)',
		re.IGNORECASE)),
	('day_month_year', re.compile(
		r'(?<!\d)(?P<d>\d{1,2})(?:st|nd|rd|th)?[ _-]?(?P<mon>' + _MONTH_ALT + r')\.?,?[ _-]?(?P<y>(?:19|20)\d{2})(?!\d)',
		re.IGNORECASE)),
)

#============================================

def _match_to_date(match: re.Match) -> datetime.date | None:
	groups = match.groupdict()
	year = int(groups['y'])
	if groups.get('mon') is not None:
		month = MONTH_NAMES.get(groups['mon'].lower())
	else:
		month = int(groups['m'])
	day = int(groups['d'])
	if month is None:
		return None
	try:
		return datetime.date(year, month, day)
	except ValueError:
		return None

#============================================

def find_date(text: str) -> dict | None:
	"""
	Find the first valid calendar date in text.

	Args:
		text: Filename or other text.

	Returns:
		dict | None: {'date', 'start', 'end', 'pattern'} or None.
	"""
	for name, pattern in DATE_PATTERNS:
		for match in pattern.finditer(text):
			found = _match_to_date(match)
			if found is None:
				continue
			return {
				'date': found,
				'start': match.start(),
				'end': match.end(),
				'pattern': name,
			}
	return None

#============================================

def isodatify_name(filename: str) -> str | None:
	"""
	Rewrite the first date in a filename as YYYY-MM-DD.

	Only the stem is searched so extensions are never rewritten.

	Returns:
		str | None: New filename, or None when nothing changes.
	"""
	stem, dot, ext = filename.rpartition('.')
	if dot == '' or stem == '':
		stem, dot, ext = filename, '', ''
	found = find_date(stem)
	if found is None:
		return None
	iso_text = found['date'].isoformat()
	new_stem = stem[:found['start']] + iso_text + stem[found['end']:]
	if new_stem == stem:
		return None
	return new_stem + dot + ext

#============================================

def timestamp_name(moment: datetime.datetime, ext: str) -> str:
	return moment.strftime('%Y-%m-%d_%H-%M-%S') + ext.lower()
