#!/usr/bin/env python3

import itertools as it, operator as op, functools as ft
import sys

import dg_routing as dg


def main(args=None):
	conf = dg.timetable.TimetableConf()
	conf_engine = dg.engine.EngineConf(
		log_progress_for={'departure-graph', 'shortest-paths'} )

	import argparse
	parser = argparse.ArgumentParser(
		description='Shortest transit routes over precalculated graph of scheduled departures.')
	parser.add_argument('stations_file',
		help='Station records file, with one "id [name...]" record per line.')
	parser.add_argument('trips_file',
		help='Trip records file, with one "src-id dst-id dep-HHMM arr-HHMM" record per line.')

	group = parser.add_argument_group('Basic timetable/parser options')
	group.add_argument('-c', '--cache-precalc', metavar='path',
		help='Precalculation cache file to load (if exists and matches timetable)'
			' or save (if missing) resulting graph and shortest-path tables from/to.')
	group.add_argument('--delimiter', metavar='char',
		help='Field delimiter for timetable files. Default: any whitespace.')

	group = parser.add_argument_group('Misc/debug options')
	group.add_argument('--engine-conf', metavar='yaml-data',
		help='Override values for EngineConf as a YAML mapping.'
			' Example: {log_progress_steps: 1000, time_query_pm_offset: null}')
	group.add_argument('--debug', action='store_true', help='Verbose operation mode.')

	cmds = parser.add_subparsers(title='Commands', dest='call')


	cmd = cmds.add_parser('cache',
		help='Generate/store precalculation cache and exit.')

	cmd = cmds.add_parser('stats',
		help='Print departure graph stats.')


	cmd = cmds.add_parser('shortest-route',
		help='Find shortest route between two stations, output it.')
	cmd.add_argument('station_from', type=int, help='Station ID to find route from.')
	cmd.add_argument('station_to', type=int, help='Station ID to find route to.')
	cmd.add_argument('-r', '--ride-only', action='store_true',
		help='Only count time spent riding trains, ignoring layovers between these.')


	cmd = cmds.add_parser('route-at-time',
		help='Find shortest route (with layovers) departing at specific time.')
	cmd.add_argument('day_time',
		help='Departure time, as HH:MM or HHMM.'
			' Departures 12h before that also match, unless'
				' time_query_pm_offset is changed via --engine-conf option.')
	cmd.add_argument('station_from', type=int, help='Station ID to find route from.')
	cmd.add_argument('station_to', type=int, help='Station ID to find route to.')


	cmd = cmds.add_parser('path-exists',
		help='Check if any route exists between two stations.'
			' Exits with non-zero code if it does not.')
	cmd.add_argument('station_from', type=int, help='Station ID to check route from.')
	cmd.add_argument('station_to', type=int, help='Station ID to check route to.')

	cmd = cmds.add_parser('direct-path-exists',
		help='Check if there is a direct trip between two stations.'
			' Exits with non-zero code if there is not.')
	cmd.add_argument('station_from', type=int, help='Station ID to check trip from.')
	cmd.add_argument('station_to', type=int, help='Station ID to check trip to.')


	cmd = cmds.add_parser('station',
		help='Print trips departing from (or arriving to) station.')
	cmd.add_argument('station_id', type=int, help='Station ID to print trips for.')
	cmd.add_argument('-a', '--arrivals', action='store_true',
		help='List trips arriving to the station instead of departing ones.')


	opts = parser.parse_args(sys.argv[1:] if args is None else args)

	dg.u.logging.basicConfig(
		format='%(asctime)s :: %(name)s %(levelname)s :: %(message)s',
		datefmt='%Y-%m-%d %H:%M:%S',
		level=dg.u.logging.DEBUG if opts.debug else dg.u.logging.WARNING )

	if opts.delimiter: conf.delimiter = opts.delimiter
	if opts.engine_conf:
		import yaml
		try: conf_vals = yaml.safe_load(opts.engine_conf)
		except yaml.YAMLError as err: parser.error('Failed to parse --engine-conf YAML: {}'.format(err))
		if not isinstance(conf_vals, dict):
			parser.error('--engine-conf must be a YAML mapping, not: {!r}'.format(conf_vals))
		for k, v in conf_vals.items():
			if not hasattr(conf_engine, k):
				parser.error('Unrecognized engine conf option: {!r} (value: {!r})'.format(k, v))
			setattr(conf_engine, k, v)

	try:
		timetable, router = dg.init_router(
			opts.stations_file, opts.trips_file, opts.cache_precalc,
			conf=conf, conf_engine=conf_engine, timer_func=dg.calc_timer )
	except dg.engine.TimetableError as err:
		parser.error('Failed to process timetable data: {}'.format(err))

	names = dict((s.id, s.name) for s in timetable.stations if s.name)
	station_name = lambda station_id:\
		'{} [{}]'.format(names[station_id], station_id) if station_id in names else str(station_id)

	if opts.call == 'cache': pass

	elif opts.call == 'stats':
		departures = router.graph.departures
		dg.u.p('Stations: {:,}'.format(len(timetable.stations)))
		dg.u.p('Trips: {:,}'.format(len(timetable.trips)))
		dg.u.p('Vertices: {:,}'.format(router.vertex_count()))
		dg.u.p('Edges: {:,}'.format(departures.stat_edge_count()))

	elif opts.call == 'shortest-route':
		route = router.shortest_route(
			opts.station_from, opts.station_to, include_layovers=not opts.ride_only )
		route.pretty_print(station_name)
		if not route.is_valid: return 1

	elif opts.call == 'route-at-time':
		try: dts = dg.u.hhmm_parse(opts.day_time)
		except ValueError: parser.error('Invalid day time value: {!r}'.format(opts.day_time))
		route = router.route_at_time(dts, opts.station_from, opts.station_to)
		route.pretty_print(station_name)
		if not route.is_valid: return 1

	elif opts.call == 'path-exists':
		found = router.path_exists(opts.station_from, opts.station_to)
		dg.u.p('Route found.' if found else 'No route found.')
		if not found: return 1

	elif opts.call == 'direct-path-exists':
		found = router.direct_path_exists(opts.station_from, opts.station_to)
		dg.u.p('Direct trip found.' if found else 'No direct trip found.')
		if not found: return 1

	elif opts.call == 'station':
		station = router.station_by_id(opts.station_id) if not opts.arrivals\
			else router.station_by_id_from_arrival_view(opts.station_id)
		if not station.is_valid: parser.error('Unknown station ID: {}'.format(opts.station_id))
		dg.u.p('Station {} ({} {}):'.format( station_name(station.id),
			len(station), 'arrivals' if opts.arrivals else 'departures' ))
		for trip in station:
			dg.u.p( '  {} {} {}, dep at {}, arr at {}'.format(
				'from' if opts.arrivals else 'to', station_name(trip.station_id),
				'({})'.format(dg.u.minutes_format(trip.ride)),
				dg.u.hhmm_format(trip.dts_dep), dg.u.hhmm_format(trip.dts_arr) ))

	else: parser.error('Action not implemented: {}'.format(opts.call))

if __name__ == '__main__': sys.exit(main())
