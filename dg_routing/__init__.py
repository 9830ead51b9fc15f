import itertools as it, operator as op, functools as ft
from pathlib import Path
import time

from . import engine, timetable, utils as u, types as t


def calc_timer(func, *args, log=u.get_logger('dg.timer'), timer_name=None, **kws):
	if not timer_name:
		func_base = func if not isinstance(func, ft.partial) else func.func
		timer_name = '.'.join([func_base.__module__.strip('__'), func_base.__qualname__])
	log.debug('[{}] Starting...', timer_name)
	td = time.monotonic()
	data = func(*args, **kws)
	td = time.monotonic() - td
	log.debug('[{}] Finished in: {:.1f}s', timer_name, td)
	return data


def init_router(
		stations_path, trips_path, cache_path=None,
		conf=None, conf_engine=None, timer_func=None, log=u.get_logger('dg.init') ):
	'''Parse timetable files and build RoutingEngine for these,
		loading precalculated graph from cache_path (if exists) or storing it there.'''
	timetable_func, router_func = timetable.parse_timetable,\
		ft.partial(engine.RoutingEngine, conf=conf_engine, timer_func=timer_func)
	if timer_func:
		timetable_func, router_func = (
			ft.partial(timer_func, func) for func in [timetable_func, router_func] )

	tt = timetable_func(stations_path, trips_path, conf)

	graph = None
	if cache_path:
		cache_path = Path(cache_path)
		if cache_path.exists():
			graph_load = u.pickle_load
			if timer_func: graph_load = ft.partial(timer_func, graph_load, timer_name='graph_load')
			graph = graph_load(cache_path)
			if graph is not None and not (
					isinstance(graph, t.base.Graph) and graph.timetable == tt ):
				log.debug('Discarding cached graph built for different timetable: {}', cache_path)
				graph = None

	router = router_func(tt, cached_graph=graph)
	if cache_path and graph is None:
		graph_dump = u.pickle_dump
		if timer_func: graph_dump = ft.partial(timer_func, graph_dump, timer_name='graph_dump')
		graph_dump(router.graph, cache_path)

	return tt, router
