import itertools as it, operator as op, functools as ft
from pathlib import Path
import unittest, tempfile, importlib.util, contextlib, io

from . import _common as c


def load_cli_module():
	path = c.path_project / 'dg-routing.py'
	mod_info = importlib.util.spec_from_file_location('dg_routing_cli', str(path))
	mod = importlib.util.module_from_spec(mod_info)
	mod_info.loader.exec_module(mod)
	return mod


class CLITests(unittest.TestCase):

	@classmethod
	def setUpClass(cls):
		cls.cli = load_cli_module()
		cls.tmp_dir = tempfile.TemporaryDirectory(prefix='dg-routing-test.')
		path = Path(cls.tmp_dir.name)
		cls.paths = path / 'stations.txt', path / 'trips.txt'
		cls.paths[0].write_text('1 Alpha\n2 Beta\n3 Gamma\n')
		cls.paths[1].write_text('1 2 0800 0830\n2 3 0900 0930\n1 3 0800 1000\n')
		cls.path_cache = path / 'graph.cache'

	@classmethod
	def tearDownClass(cls): cls.tmp_dir.cleanup()

	def run_cli(self, *args):
		buff = io.StringIO()
		with contextlib.redirect_stdout(buff):
			code = self.cli.main(list(map(str, self.paths)) + list(map(str, args)))
		return code, buff.getvalue()

	def test_shortest_route(self):
		code, out = self.run_cli('shortest-route', 1, 3)
		self.assertFalse(code)
		self.assertIn('legs: 2', out)
		self.assertIn('from (dep at 08:00): Alpha [1]', out)
		self.assertIn('to (arr at 09:30): Gamma [3]', out)

		code, out = self.run_cli('shortest-route', '--ride-only', 1, 3)
		self.assertFalse(code)
		self.assertIn('ride: 1h00m', out)

		code, out = self.run_cli('shortest-route', 3, 1)
		self.assertEqual(code, 1)
		self.assertEqual(out.strip(), 'No route found.')

	def test_route_at_time(self):
		code, out = self.run_cli('route-at-time', '20:00', 1, 3)
		self.assertFalse(code)
		self.assertIn('departure: 08:00', out)
		code, out = self.run_cli('route-at-time', '0900', 1, 3)
		self.assertEqual(code, 1)
		with contextlib.redirect_stderr(io.StringIO()):
			with self.assertRaises(SystemExit): self.run_cli('route-at-time', '9:99', 1, 3)

	def test_path_checks(self):
		self.assertEqual(self.run_cli('path-exists', 1, 3), (None, 'Route found.\n'))
		self.assertEqual(self.run_cli('path-exists', 3, 1), (1, 'No route found.\n'))
		self.assertEqual(self.run_cli('direct-path-exists', 1, 3), (None, 'Direct trip found.\n'))
		self.assertEqual(self.run_cli('direct-path-exists', 2, 1), (1, 'No direct trip found.\n'))

	def test_station(self):
		code, out = self.run_cli('station', 1)
		self.assertEqual(out.splitlines(), [
			'Station Alpha [1] (2 departures):',
			'  to Beta [2] (30m), dep at 08:00, arr at 08:30',
			'  to Gamma [3] (2h00m), dep at 08:00, arr at 10:00' ])
		code, out = self.run_cli('station', '--arrivals', 3)
		self.assertEqual(out.splitlines()[0], 'Station Gamma [3] (2 arrivals):')
		self.assertIn('  from Beta [2] (30m), dep at 09:00, arr at 09:30', out.splitlines())
		with contextlib.redirect_stderr(io.StringIO()):
			with self.assertRaises(SystemExit): self.run_cli('station', 7)

	def test_stats_and_cache(self):
		code, out = self.run_cli('--cache-precalc', self.path_cache, 'cache')
		self.assertFalse(code)
		self.assertTrue(self.path_cache.exists())
		code, out = self.run_cli('-c', self.path_cache, 'stats')
		self.assertEqual(out.splitlines(), [
			'Stations: 3', 'Trips: 3', 'Vertices: 6', 'Edges: 4' ])

	def test_engine_conf(self):
		conf = '{time_query_pm_offset: null}'
		code, out = self.run_cli('--engine-conf', conf, 'route-at-time', '20:00', 1, 3)
		self.assertEqual(code, 1)
		with contextlib.redirect_stderr(io.StringIO()):
			with self.assertRaises(SystemExit):
				self.run_cli('--engine-conf', '{no_such_option: 1}', 'stats')
		for conf in '12', '[1, 2]', '{unclosed: ':
			with self.subTest(conf=conf), contextlib.redirect_stderr(io.StringIO()) as err:
				with self.assertRaises(SystemExit): self.run_cli('--engine-conf', conf, 'stats')
				self.assertIn('--engine-conf', err.getvalue())
