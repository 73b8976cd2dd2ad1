"""
The overall control: load a program, profile every entry call, and gather the findings.
Also a watch loop that does it all over again whenever the program changes.
"""
import os, sys, time
from pathlib import Path
from typing import Callable
from .diagnostics import Report, forget_source_texts
from .limits import Limits, DEFAULT_LIMITS
from .resolution import RoadMap, Yuck
from .interpreter import AbstractInterpreter, RunCancelled
from .cache import ResourceLimitExceeded
from .findings import Findings
from . import syntax

def run_once(path, report:Report=None, limits:Limits=DEFAULT_LIMITS, should_stop:Callable[[], bool]=None) -> Findings:
	"""
	Raises Yuck if the program can't be analyzed at all, or RunCancelled if should_stop says so.
	A resource limit blown while profiling some entry call costs only that entry.
	"""
	forget_source_texts()
	report = report or Report(verbose=0)
	roadmap = RoadMap(path, report)
	interpreter = AbstractInterpreter(roadmap, report, limits, should_stop)
	failures = []

	report.info("Globals", roadmap.module.path)
	try: toplevel = interpreter.evaluate_globals()
	except ResourceLimitExceeded as e:
		toplevel = None
		failures.append(("the globals", str(e)))

	entries = []
	for entry in roadmap.module.entries:
		text = syntax.unparse(entry)
		report.info("Profile", text)
		try: entries.append(interpreter.profile(entry))
		except ResourceLimitExceeded as e:
			report.info("Gave up on", text, "because it", e)
			failures.append((text, str(e)))
	return Findings(roadmap.module.path, toplevel, entries, failures)

def _stamp(path:Path):
	try:
		st = os.stat(path)
	except OSError:
		return None
	return st.st_mtime_ns, st.st_size

def watch(path, report:Report, limits:Limits=DEFAULT_LIMITS, *, interval=0.5, sleep=time.sleep, out=None, max_runs=None) -> int:
	"""
	Run once, then again every time the file changes, until interrupted.
	A burst of changes in quick succession yields one run, once the file settles.
	A change in the middle of a run abandons that run and starts afresh.
	Returns the number of completed runs, which matters only when max_runs is given.
	"""
	path = Path(path)
	out = out or sys.stdout
	runs = 0
	stamp = _stamp(path)
	while True:
		def should_stop(started=stamp): return _stamp(path) != started
		try:
			findings = run_once(path, report, limits, should_stop)
		except RunCancelled:
			report.info("Change detected mid-run; starting over.")
			stamp = _settle(path, interval, sleep)
			continue
		except Yuck as e:
			report.complain_to_console()
			print("Could not analyze %s (%s phase)."%(path, e.args[0]), file=out)
			report.reset()
		else:
			print(findings.as_text(), file=out)
		out.flush()
		runs += 1
		if max_runs is not None and runs >= max_runs: return runs
		while _stamp(path) == stamp: sleep(interval)
		report.info("Change detected.")
		stamp = _settle(path, interval, sleep)

def _settle(path:Path, interval:float, sleep) -> tuple:
	""" Wait until two successive looks at the file agree. """
	stamp = _stamp(path)
	while True:
		sleep(interval)
		now = _stamp(path)
		if now == stamp: return stamp
		stamp = now
