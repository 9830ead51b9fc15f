import itertools as it, operator as op, functools as ft
from collections import defaultdict

import numpy as np

from . import utils as u, types as t


@u.attr_struct(vals_to_attrs=True)
class EngineConf:
	log_progress_for = None # or a set/list of prefixes
	log_progress_steps = 30

	# route_at_time() also matches departures at "time - offset",
	#  so that 12h-clock input like 230 can match 1430 departures.
	# Ambiguous for anything before noon, None disables it.
	time_query_pm_offset = 1200


def timer(self_or_func, func=None, *args, **kws):
	'Calculation call wrapper for timer/progress logging.'
	if not func: return lambda s,*a,**k: s.timer_wrapper(self_or_func, s, *a, **k)
	return self_or_func.timer_wrapper(func, *args, **kws)


class TimetableError(ValueError): pass

class RoutingEngine:

	graph = None

	def __init__(self, timetable, conf=None, cached_graph=None, timer_func=None):
		'''Creates departure-graph routing engine from Timetable data.
			All shortest paths are precalculated here, nothing is changed afterwards.'''
		self.conf, self.log = conf or EngineConf(), u.get_logger('dg')
		self.timer_wrapper = timer_func if timer_func else lambda f,*a,**k: f(*a,**k)

		if not cached_graph:
			self.check_timetable(timetable)
			stations = self.build_station_index(timetable)
			arrivals = self.build_station_index(timetable, arrivals=True)
			departures = self.build_departure_graph(timetable)
			table_layovers = self.precalc_successor_table(departures, True)
			table_ride = self.precalc_successor_table(departures, False)
			graph = t.base.Graph( timetable,
				stations, arrivals, departures, table_layovers, table_ride )
		else: graph = cached_graph
		self.graph = graph

	@u.coroutine
	def progress_iter(self, prefix, n_max, steps=None, n=0):
		'Progress logging helper coroutine for long calculations.'
		prefix_set = self.conf.log_progress_for
		if not prefix_set or prefix not in prefix_set:
			while True: yield # dry-run
		if not steps: steps = self.conf.log_progress_steps
		steps = min(n_max, steps)
		step_n = steps and n_max / steps
		msg_tpl = '[{{}}] Step {{:>{0}.0f}} / {{:{0}d}}{{}}'.format(len(str(steps)))
		while True:
			dn_msg = yield
			if isinstance(dn_msg, tuple): dn, msg = dn_msg
			elif isinstance(dn_msg, int): dn, msg = dn_msg, None
			else: dn, msg = 1, dn_msg
			n += dn
			if n == dn or n % step_n < 1:
				if msg:
					if not isinstance(msg, str): msg = msg[0].format(*msg[1:])
					msg = ': {}'.format(msg)
				self.log.debug(msg_tpl, prefix, n / step_n, steps, msg or '')


	def check_timetable(self, timetable):
		'Sanity checks for timetable records, raising TimetableError on any issues.'
		def fail(msg, *rec):
			u.log_lines(self.log.debug, [(msg + ': {}', *rec)])
			raise TimetableError(msg, *rec)

		is_int = lambda v: isinstance(v, int) and not isinstance(v, bool)
		station_ids = timetable.station_ids()
		if not all(map(is_int, station_ids)):
			fail('Non-integer station id(s)', station_ids)
		if station_ids != list(range(1, len(station_ids) + 1)):
			fail('Station ids must be sequential and start from 1', station_ids)
		for trip in timetable.trips:
			if not all(map(is_int, trip.key)): fail('Non-integer trip record field(s)', trip)
			if not (trip.src in station_ids and trip.dst in station_ids):
				fail('Trip between unknown stations', trip)
			try: ride = trip.ride
			except (TypeError, ValueError): fail('Invalid trip departure/arrival time value(s)', trip)
			if ride < 0: fail('Trip arrives before its departure', trip)

	@timer
	def build_station_index(self, timetable, arrivals=False):
		'''Station trip lists, for lookups/display only.
			arrivals=True builds inverted index - trips arriving to each station.'''
		station_trips = defaultdict(list)
		for trip in timetable.trips:
			if not arrivals:
				station_trips[trip.src].append(t.public.Trip(trip.dst, trip.dts_dep, trip.dts_arr))
			else: station_trips[trip.dst].append(t.public.Trip(trip.src, trip.dts_dep, trip.dts_arr))
		return t.base.StationIndex(
			t.public.Station(station.id, station_trips[station.id])
			for station in timetable.stations )

	@timer
	def build_departure_graph(self, timetable):
		'''Build graph with one vertex per scheduled departure (trip record),
				with edges to all valid onward connections at the trip's destination,
				followed by one edge-less terminal vertex per station.
			Records with identical (src, dst, dep, arr) are the same vertex.'''
		records, n_records = timetable.trips, len(timetable.trips)
		key_terminal = dict( (station.id, n_records + m)
			for m, station in enumerate(timetable.stations) )

		key_canonical, aliases = dict(), dict() # {record-tuple: key}, {dup_key: key}
		station_departures = defaultdict(list) # {station_id: [(dep_minutes, key)]}
		for key, trip in enumerate(records):
			key0 = key_canonical.setdefault(trip.key, key)
			if key0 != key:
				aliases[key] = key0
				continue
			station_departures[trip.src].append((u.hhmm_minutes(trip.dts_dep), key))

		vertex_edges, edge_count = dict(), 0
		progress = self.progress_iter('departure-graph', n_records)
		for key, trip in enumerate(records):
			progress.send(['edges={:,}', edge_count])
			if key in aliases: continue
			arr = u.hhmm_minutes(trip.dts_arr)
			edge = ft.partial( t.public.ConnectionEdge,
				station_src=trip.src, station_dst=trip.dst,
				dts_dep=trip.dts_dep, dts_arr=trip.dts_arr, ride=trip.ride )
			edges = vertex_edges[key] = [edge(key_terminal[trip.dst])] # journey ends here
			for dep, key_conn in station_departures[trip.dst]:
				if key_conn == key or dep <= arr: continue
				edges.append(edge(key_conn, layover=dep - arr))
			edge_count += len(edges)

		vertices = list(
			t.public.DepartureVertex(key, trip.src,
				trip.dts_dep, vertex_edges[aliases.get(key, key)])
			for key, trip in enumerate(records) )
		vertices.extend(
			t.public.DepartureVertex(key_terminal[station.id], station.id)
			for station in timetable.stations )
		graph = t.base.DepartureGraph(vertices, n_records, aliases)

		self.log.debug( 'Departure graph: vertices={:,} (duplicate-records={:,}),'
			' edges={:,}', len(graph), len(aliases), graph.stat_edge_count() )
		return graph

	@timer
	def precalc_successor_table(self, graph, include_layovers):
		'''Floyd-Warshall all-pairs shortest paths over departure graph,
				using either combined ride+layover or ride-only edge weights.
			Returns SuccessorTable, where next-hop for (i, j) is always
				a successor of i, so that routes can be walked from the start.'''
		inf, n = t.base.weight_inf, len(graph)
		dist = np.full((n, n), inf, dtype=t.base.weight_t)
		succ = np.full((n, n), t.base.key_none, dtype=np.int64)

		w_max = 0
		for key, edge in graph.edges():
			w = edge.weight_for(include_layovers)
			if w < dist[key, edge.key_dst]: # lightest of parallel edges
				dist[key, edge.key_dst], succ[key, edge.key_dst] = w, edge.key_dst
			w_max = max(w_max, w)
		# Paths have < n edges, and sum of any two of them must not overflow
		if 2 * n * w_max >= inf:
			raise TimetableError('Edge weights are too large for path calculations', w_max)

		progress = self.progress_iter('shortest-paths', n)
		for k in range(n):
			progress.send(['layovers={}', include_layovers])
			# Only finite d[i,k] and d[k,j] are added, so "inf" is never a summand.
			# d[k,k] is always inf (graph is acyclic), so row/column k are not changed here.
			rows, = np.nonzero(dist[:, k] != inf)
			cols, = np.nonzero(dist[k] != inf)
			if not (rows.size and cols.size): continue
			block = np.ix_(rows, cols)
			dist_block = dist[block]
			via = dist[rows, k][:, None] + dist[k, cols][None, :]
			better = via < dist_block
			if not better.any(): continue
			dist[block] = np.where(better, via, dist_block)
			succ[block] = np.where(better, succ[rows, k][:, None], succ[block])

		self.log.debug( 'Shortest paths (layovers={}): reachable-pairs={:,}',
			include_layovers, int(np.count_nonzero(succ != t.base.key_none)) )
		return t.base.SuccessorTable(succ, dist, include_layovers)


	def reconstruct_route(self, key_src, key_dst, table):
		'''Walk successor table from key_src vertex to key_dst, collecting edges.
			Returns invalid Route if key_dst can't be reached.'''
		departures = self.graph.departures
		key, segments = key_src, list()
		for n in range(len(departures)): # any path has less hops than that
			if key == key_dst: break
			vertex, key_next = departures[key], table.next_hop(key, key_dst)
			if vertex.is_terminal or key_next is None: break
			segments.append(vertex.edge_to(key_next, table.include_layovers))
			key = key_next
		if key != key_dst: return t.public.Route.invalid()
		route = t.public.Route(departures[key_src], segments)
		return route if route.is_valid else t.public.Route.invalid()

	def route_candidates(self, station_src, station_dst, table):
		'''Yield valid Routes to station_dst terminal from
			each scheduled departure at station_src, in vertex key order.'''
		departures = self.graph.departures
		key_dst = departures.terminal_for(station_dst)
		if key_dst is None: return
		for key_src in departures.departures_from(station_src):
			route = self.reconstruct_route(key_src, key_dst, table)
			if route.is_valid: yield route

	def shortest_of(self, routes, include_layovers=True):
		'Lowest-weight Route from iterable, first one on ties, or invalid Route.'
		return u.min( routes,
			key=op.methodcaller('weight', include_layovers),
			default=t.public.Route.invalid() )


	@timer
	def shortest_route(self, station_src, station_dst, include_layovers=True):
		'Shortest Route between stations, including layover times into its weight or not.'
		table = self.graph.table_for(include_layovers)
		return self.shortest_of(
			self.route_candidates(station_src, station_dst, table), include_layovers )

	@timer
	def route_at_time(self, dts_dep, station_src, station_dst):
		'''Shortest Route (layovers included) with departure at dts_dep
				(HHMM) or at dts_dep minus EngineConf.time_query_pm_offset.'''
		dts_set, pm_offset = {dts_dep}, self.conf.time_query_pm_offset
		if pm_offset: dts_set.add(dts_dep - pm_offset)
		routes = self.route_candidates(station_src, station_dst, self.graph.table_layovers)
		return self.shortest_of(route for route in routes if route.dts_dep in dts_set)

	def path_exists(self, station_src, station_dst):
		return self.shortest_route(station_src, station_dst, include_layovers=True).is_valid

	def direct_path_exists(self, station_src, station_dst):
		'Whether any precalculated route between stations is a single trip.'
		routes = self.route_candidates(station_src, station_dst, self.graph.table_layovers)
		return any(len(route) == 1 for route in routes)

	def station_by_id(self, station_id):
		'Station with departing trips, or invalid Station (id=-1).'
		return self.graph.stations.get(station_id)

	def station_by_id_from_arrival_view(self, station_id):
		'Station with arriving trips, or invalid Station (id=-1).'
		return self.graph.arrivals.get(station_id)

	def vertex_count(self): return len(self.graph.departures)
