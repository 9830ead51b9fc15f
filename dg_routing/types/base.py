### RoutingEngine internal types - station index, departure graph, successor tables

import itertools as it, operator as op, functools as ft

import numpy as np

from . import public as tp
from .. import utils as u


# Weights are int64 minutes, with max value used as "no path" distance.
# Successor tables use -1 as "unreachable" next-hop key.
weight_t = np.int64
weight_inf = int(np.iinfo(weight_t).max)
key_none = -1


class StationIndex:
	'''Per-station trip lists, indexed by 1-based station id.
		Only used for display/lookup, never for route calculations.'''

	def __init__(self, stations): self.set_idx = list(stations)

	def get(self, station_id):
		'Returns invalid Station (id=-1) for any id outside of [1, len].'
		n = station_id - 1
		if not 0 <= n < len(self.set_idx): return tp.Station.invalid()
		return self.set_idx[n]

	def __getitem__(self, station_id): return self.get(station_id)
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(self.set_idx)


class DepartureGraph:
	'''Immutable list of DepartureVertex objects.
		Keys [0, n_departures) are scheduled departures in timetable-record order,
			followed by one terminal vertex per station, in station order.'''

	def __init__(self, vertices, n_departures, aliases=None):
		self.set_idx, self.n_departures = tuple(vertices), n_departures
		self.aliases = dict(aliases or dict()) # {duplicate_key: canonical_key}
		self.idx_station = dict() # {station_id: [departure_keys]}
		self.idx_terminal = dict() # {station_id: terminal_key}
		for vertex in self.set_idx:
			if vertex.key < n_departures:
				# Duplicate-record vertices are not indexed, as they
				#  share edges with the canonical (first) one and produce same routes.
				if vertex.key in self.aliases: continue
				self.idx_station.setdefault(vertex.station_id, list()).append(vertex.key)
			else: self.idx_terminal[vertex.station_id] = vertex.key

	def canonical_key(self, key): return self.aliases.get(key, key)

	def departures_from(self, station_id):
		'Keys of scheduled-departure vertices for station, in key order.'
		return self.idx_station.get(station_id, list())

	def terminal_for(self, station_id):
		'Terminal vertex key for station or None.'
		return self.idx_terminal.get(station_id)

	def edges(self):
		for vertex in self.set_idx:
			for edge in vertex.edges: yield vertex.key, edge

	def stat_edge_count(self):
		return sum(len(v.edges) for v in self.set_idx[:self.n_departures])

	def __getitem__(self, key): return self.set_idx[key]
	def __len__(self): return len(self.set_idx)
	def __iter__(self): return iter(self.set_idx)


class SuccessorTable:
	'''Next-hop table from all-pairs shortest path precalculation.
		successors[i, j] is the vertex to move to from i on the
			shortest path to j, or key_none if j is unreachable from i.
		Both matrices are read-only after construction.'''

	def __init__(self, successors, distances, include_layovers):
		self.include_layovers = include_layovers
		self.successors, self.distances = successors, distances
		for m in successors, distances: m.flags.writeable = False

	def next_hop(self, key_src, key_dst):
		key = int(self.successors[key_src, key_dst])
		return None if key == key_none else key

	def distance(self, key_src, key_dst):
		'Shortest-path weight or None if there is no path.'
		d = self.distances[key_src, key_dst]
		return None if d == weight_inf else int(d)

	def reachable(self, key_src, key_dst):
		return self.successors[key_src, key_dst] != key_none

	def __setstate__(self, state):
		# Pickle restores arrays as writeable
		for k, v in state.items(): setattr(self, k, v)
		for m in self.successors, self.distances: m.flags.writeable = False

	def __len__(self): return len(self.successors)


@u.attr_struct
class Graph:
	keys = 'timetable stations arrivals departures table_layovers table_ride'
	def __iter__(self): return iter(u.attr.astuple(self, recurse=False))

	def table_for(self, include_layovers):
		return self.table_layovers if include_layovers else self.table_ride
