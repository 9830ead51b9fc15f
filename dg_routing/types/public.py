import itertools as it, operator as op, functools as ft

from .. import utils as u


### RoutingEngine input data

# Timetable is a flat list of station records (only ids matter here)
#  and trip records - single scheduled legs between two stations.


@u.attr_struct(frozen=True)
class StationRecord:
	id = u.attr_init()
	name = u.attr_init(None)

@u.attr_struct(frozen=True)
class TripRecord:
	keys = 'src dst dts_dep dts_arr'

	@property
	def key(self): return self.src, self.dst, self.dts_dep, self.dts_arr

	@property
	def ride(self):
		'Time spent travelling, in minutes.'
		return u.hhmm_minutes(self.dts_arr) - u.hhmm_minutes(self.dts_dep)

@u.attr_struct(frozen=True)
class Timetable:
	stations = u.attr_init(tuple, converter=tuple)
	trips = u.attr_init(tuple, converter=tuple)

	def station_ids(self): return list(map(op.attrgetter('id'), self.stations))


### Station index (display/lookup only)

@u.attr_struct(frozen=True)
class Trip:
	'''Trip leg as seen from some station.
		station_id is the other end of the leg - destination in
			the departures view and origin in the arrivals view.'''
	station_id = u.attr_init()
	dts_dep = u.attr_init()
	dts_arr = u.attr_init()

	@property
	def ride(self): return u.hhmm_minutes(self.dts_arr) - u.hhmm_minutes(self.dts_dep)

@u.attr_struct(frozen=True)
class Station:
	id = u.attr_init()
	trips = u.attr_init(tuple, converter=tuple)

	invalid_id = -1

	@classmethod
	def invalid(cls): return cls(cls.invalid_id)

	@property
	def is_valid(self): return self.id > 0

	def __getitem__(self, n): return self.trips[n]
	def __len__(self): return len(self.trips)
	def __iter__(self): return iter(self.trips)


### Departure graph vertices/edges

@u.attr_struct(frozen=True)
class ConnectionEdge:
	'''Directed edge from scheduled departure to either another
			departure (connection) or station terminal vertex (end of journey).
		Leg stations/times are stored here too, so that Routes are self-contained.'''
	key_dst = u.attr_init()
	station_src = u.attr_init()
	station_dst = u.attr_init()
	dts_dep = u.attr_init()
	dts_arr = u.attr_init()
	ride = u.attr_init()
	layover = u.attr_init(0)

	@property
	def weight(self): return self.ride + self.layover

	def weight_for(self, include_layovers):
		return self.weight if include_layovers else self.ride

@u.attr_struct(frozen=True)
class DepartureVertex:
	key = u.attr_init()
	station_id = u.attr_init()
	dts_dep = u.attr_init(None) # None for terminal vertices
	edges = u.attr_init(tuple, converter=tuple)

	@classmethod
	def invalid(cls): return cls(-1, Station.invalid_id, -1)

	@property
	def is_terminal(self): return not self.edges

	def edge_to(self, key_dst, include_layovers=True):
		'Lowest-weight edge to specified vertex key or None.'
		return u.min(
			(edge for edge in self.edges if edge.key_dst == key_dst),
			key=op.methodcaller('weight_for', include_layovers), default=None )


### RoutingEngine query result

@u.attr_struct(frozen=True, repr=False)
class Route:
	departure = u.attr_init()
	segments = u.attr_init(tuple, converter=tuple)

	@classmethod
	def invalid(cls): return cls(DepartureVertex.invalid())

	@property
	def is_valid(self):
		if self.departure.key < 0: return False
		return any(seg.station_src != seg.station_dst for seg in self.segments)

	@property
	def station_src(self): return self.departure.station_id
	@property
	def station_dst(self):
		return self.segments[-1].station_dst if self.segments else Station.invalid_id

	@property
	def dts_dep(self): return self.departure.dts_dep
	@property
	def dts_arr(self): return self.segments[-1].dts_arr if self.segments else None

	@property
	def ride(self): return sum(map(op.attrgetter('ride'), self.segments))
	@property
	def layover(self): return sum(map(op.attrgetter('layover'), self.segments))

	def weight(self, include_layovers=True):
		return sum(seg.weight_for(include_layovers) for seg in self.segments)

	def __len__(self): return len(self.segments)
	def __iter__(self): return iter(self.segments)

	def __repr__(self):
		if not self.is_valid: return '<Route [invalid]>'
		points = ['{}[{}]'.format(self.station_src, u.hhmm_format(self.dts_dep))]
		for seg in self.segments:
			points.append('{}[{}]'.format(seg.station_dst, u.hhmm_format(seg.dts_arr)))
		return '<Route[ {} ]>'.format(' - '.join(points))

	def pretty_print(self, station_name_func=None, indent=0, **print_kws):
		p = lambda tpl,*a,**k: print(' '*indent + tpl.format(*a,**k), **print_kws)
		if not station_name_func: station_name_func = str
		if not self.is_valid:
			p('No route found.')
			return

		p( 'Route (departure: {}, arrival: {}, legs: {}, ride: {}, layovers: {}):',
			u.hhmm_format(self.dts_dep), u.hhmm_format(self.dts_arr), len(self),
			u.minutes_format(self.ride), u.minutes_format(self.layover) )
		for seg in self.segments:
			p('  leg [{} -> {}]:', seg.station_src, seg.station_dst)
			p( '    from (dep at {}): {}',
				u.hhmm_format(seg.dts_dep), station_name_func(seg.station_src) )
			p( '    to (arr at {}): {}',
				u.hhmm_format(seg.dts_arr), station_name_func(seg.station_dst) )
			if seg.layover: p('    layover: {}', u.minutes_format(seg.layover))
