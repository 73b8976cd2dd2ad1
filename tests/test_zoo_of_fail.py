from pathlib import Path
import unittest
from unittest import mock

from sleuth.diagnostics import Report
from sleuth.resolution import RoadMap, Yuck
from sleuth.interpreter import AbstractInterpreter

class Silence(Report):
	def __init__(self):
		super().__init__(verbose=0)
		self.complain_to_console = mock.Mock()
	pass

base_folder = Path(__file__).parent.parent
zoo_fail = base_folder/"zoo/fail"

def _identify_problem(folder:Path, filename:str):
	specimen_path = folder / filename
	assert specimen_path.exists(), specimen_path
	report = Silence()
	try:
		roadmap = RoadMap(specimen_path, report)
	except Yuck as ex:
		assert 0 == report.complain_to_console.call_count
		assert report.sick()
		return ex.args[0]
	else:
		report.assert_no_issues("Resolution passed, so it should have nothing to say.")
		interpreter = AbstractInterpreter(roadmap, report)
		if any(interpreter.profile(e).leads_to_error() for e in roadmap.module.entries): return "profile"
		else: return "failed to fail"

class ZooOfFail(unittest.TestCase):
	""" Tests that assert about failure modes. """

	def expect(self, folder, cases):
		for basename in cases:
			with self.subTest(basename):
				self.assertEqual(folder, _identify_problem(zoo_fail / folder, basename + ".json"))

	def test_00_parse(self):
		self.expect("parse", [
			"syntax_error",
			"not_an_object",
			"unknown_expression",
			"entry_not_a_call",
			"bad_variance",
		])

	def test_01_define(self):
		self.expect("define", [
			"defined_twice",
			"redefine_builtin",
			"duplicate_field",
			"duplicate_parameter",
			"abstract_with_fields",
		])

	def test_02_hierarchy(self):
		self.expect("hierarchy", [
			"concrete_supertype",
			"circular_supertypes",
			"own_supertype",
			"unknown_supertype",
		])

	def test_03_resolve(self):
		self.expect("resolve", [
			"undefined_type",
			"wrong_type_arity",
			"undefined_type_in_isa",
			"arguments_to_type_parameter",
		])

	def test_no_such_file(self):
		report = Silence()
		with self.assertRaises(Yuck) as context:
			RoadMap(zoo_fail/"no_such_thing.json", report)
		self.assertEqual("parse", context.exception.args[0])
		self.assertIn("no_such_thing", report.issue_text())

	def test_syntax_error_is_illustrated(self):
		report = Silence()
		with self.assertRaises(Yuck):
			RoadMap(zoo_fail/"parse/syntax_error.json", report)
		self.assertIn("pear-shaped", report.issue_text())

	def test_the_demo_fails_at_profile_time(self):
		self.assertEqual("profile", _identify_problem(base_folder/"examples", "demo.json"))

if __name__ == '__main__':
	unittest.main()
