"""
This is a type-level profiler for programs in a multiple-dispatch language.

{0}

For example:

    sleuth examples/demo.json

will profile each entry call in the program and explain the type errors it can prove.

    sleuth -h

will explain all the arguments.
"""
import sys, argparse
from pathlib import Path
from .limits import DEFAULT_LIMITS

parser = argparse.ArgumentParser(
	prog="sleuth",
	description="Find type-level bugs by abstract interpretation, without running anything.",
)
parser.add_argument("program", help="try examples/demo.json for example.")
parser.add_argument('-v', "--verbose", action="count", help="Narrate progress on stderr. Twice to trace every call.")
parser.add_argument('-w', "--watch", action="store_true", help="Keep watching the program and report again whenever it changes.")
parser.add_argument("--depth", type=int, default=DEFAULT_LIMITS.max_depth, help="Most nested calls under one entry call (default %(default)s).")
parser.add_argument("--cache", type=int, default=DEFAULT_LIMITS.max_cache_entries, help="Most distinct inference-cache entries per entry call (default %(default)s).")
parser.add_argument("--widen", type=int, default=DEFAULT_LIMITS.widen_threshold, help="Distinct types to tolerate before widening (default %(default)s).")

def run(args):
	from .diagnostics import Report
	from .resolution import Yuck
	from .limits import Limits
	from . import executive
	report = Report(verbose=args.verbose)
	limits = Limits(widen_threshold=args.widen, max_cache_entries=args.cache, max_depth=args.depth)
	path = Path.cwd() / args.program
	if args.watch:
		try: executive.watch(path, report, limits)
		except KeyboardInterrupt: pass
		return 0
	try: findings = executive.run_once(path, report, limits)
	except Yuck as e:
		report.complain_to_console()
		print("Could not analyze %s (%s phase)."%(args.program, e.args[0]), file=sys.stderr)
		return 1
	print(findings.as_text())
	return 0 if findings.ok() else 1

def main():
	if len(sys.argv) > 1:
		exit(run(parser.parse_args()))
	else:
		print(__doc__.strip().format(parser.format_usage()))
