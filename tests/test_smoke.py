from pathlib import Path
import unittest
from sleuth import diagnostics, resolution, executive
from sleuth.findings import Findings

base_folder = Path(__file__).parent.parent
examples = base_folder/"examples"
zoo_ok = base_folder/"zoo/ok"

def _good(folder, which) -> Findings:
	report = diagnostics.Report(verbose=0)
	try:
		findings = executive.run_once(folder / (which + ".json"), report)
	except resolution.Yuck as ex:
		assert report.sick()
		report.complain_to_console()
		assert False, "Test failed %s phase"%ex.args[0]
	else:
		report.assert_no_issues("Ostensibly-good example broke, but failed to fail properly.")
		assert findings.ok(), findings.as_text()
		return findings

class ExampleSmokeTests(unittest.TestCase):
	""" Profile all the good examples; Test for no smoke. """

	def test_fixed_demo(self):
		findings = _good(examples, "demo_fixed")
		self.assertEqual("No errors detected.", findings.as_text())
		self.assertEqual(5, len(findings.entries))

	def test_zoo_of_ok(self):
		for name in [
			"narrowing",
			"loops",
			"growing",
			"mutual",
			"shapes",
		]:
			with self.subTest(name):
				_good(zoo_ok, name)


if __name__ == '__main__':
	unittest.main()
