import itertools as it, operator as op, functools as ft
from pathlib import Path

from . import utils as u, types as t
from .engine import TimetableError


log = u.get_logger('dg.timetable')


@u.attr_struct(vals_to_attrs=True)
class TimetableConf:

	# Both files have one record per line, with fields split by delimiter.
	# Station lines: id [name...], trip lines: src-id dst-id dep-HHMM arr-HHMM
	comment_prefix = '#'
	delimiter = None # None - any whitespace, or e.g. ',' for csv-like files
	station_name_sep = ' ' # to join remaining station fields with into name


def iter_rows(path, conf):
	'Yield (line_number, fields) for each non-empty non-comment line in file.'
	log.debug('Processing timetable file: {}', path)
	with Path(path).open(encoding='utf-8-sig') as src:
		for n, line in enumerate(src, 1):
			line = line.strip()
			if not line: continue
			if conf.comment_prefix and line.startswith(conf.comment_prefix): continue
			yield n, list(v.strip() for v in line.split(conf.delimiter))

def _int(v):
	# No silent coercion of floats/bools/etc
	if isinstance(v, str): return int(v)
	if isinstance(v, int) and not isinstance(v, bool): return v
	raise TypeError(v)

def _int_fields(row, count):
	if len(row) < count:
		raise TimetableError('Incomplete record, expected {} fields'.format(count), row)
	try: return list(map(_int, row[:count]))
	except (TypeError, ValueError):
		raise TimetableError('Non-numeric record field(s)', row) from None

def station_record(row, name_sep=' '):
	station_id, = _int_fields(row, 1)
	name = name_sep.join(map(str, row[1:])) or None
	return t.public.StationRecord(station_id, name)

def trip_record(row):
	return t.public.TripRecord(*_int_fields(row, 4))

def timetable_from_rows(station_rows, trip_rows, conf=None):
	'''Build Timetable from station (id, name...) and
			trip (src, dst, dep, arr) rows of strings or ints.
		Raises TimetableError for any malformed row.'''
	if not conf: conf = TimetableConf()
	return t.public.Timetable(
		list(station_record(row, conf.station_name_sep) for row in station_rows),
		list(trip_record(row) for row in trip_rows) )


def parse_timetable(stations_path, trips_path, conf=None):
	'Parse Timetable from stations/trips files, with file/line info in errors.'
	if not conf: conf = TimetableConf()
	stations, trips = list(), list()
	for path, records, parse_func in [
			(stations_path, stations, ft.partial(station_record, name_sep=conf.station_name_sep)),
			(trips_path, trips, trip_record) ]:
		for n, row in iter_rows(path, conf):
			try: records.append(parse_func(row))
			except TimetableError as err:
				raise TimetableError('{}:{}: {}'.format(path, n, err.args[0]), row) from None
	log.debug('Parsed timetable: stations={:,}, trips={:,}', len(stations), len(trips))
	return t.public.Timetable(stations, trips)
