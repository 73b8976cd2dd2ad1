"""
Turn call-frame trees into a report a programmer can act on.

Only frames that carry an error, or lead to one, make it into the report.
Each appears on its own line, indented by depth, with its own errors
directly beneath and then its children in source order.
"""
from typing import Optional, Sequence
from .stacking import CallFrame
from .diagnostics import ErrorRecord

INDENT = "  "

class Findings:
	""" Everything one run found: a tree per entry call, plus the entries the tool itself choked on. """
	def __init__(self, path:str, toplevel:Optional[CallFrame], entries:Sequence[CallFrame], failures:Sequence[tuple[str, str]]=()):
		self.path = path
		self.toplevel = toplevel
		self.entries = list(entries)
		self.failures = list(failures)

	def _roots(self) -> list[CallFrame]:
		roots = [self.toplevel] if self.toplevel is not None else []
		roots.extend(self.entries)
		return [r for r in roots if r.leads_to_error()]

	def error_count(self) -> int:
		return sum(r.error_count() for r in self._roots())

	def ok(self) -> bool:
		return not self.error_count() and not self.failures

	def all_errors(self) -> list[ErrorRecord]:
		""" In the same order the report shows them. """
		found = []
		def walk(frame:CallFrame):
			found.extend(frame.errors)
			for child in _relevant(frame): walk(child)
		for root in self._roots(): walk(root)
		return found

	def as_text(self) -> str:
		lines = []
		count = self.error_count()
		if count:
			lines.append("===== %d possible error%s found ====="%(count, "" if count == 1 else "s"))
			for root in self._roots():
				lines.append("")
				_render(root, 0, lines)
		else:
			lines.append("No errors detected.")
		if self.failures:
			lines.append("")
			for label, reason in self.failures:
				lines.append("!! internal failure while profiling %s: %s"%(label, reason))
		return "\n".join(lines)

def _relevant(frame:CallFrame) -> list[CallFrame]:
	# sorted() is stable, so siblings on one line keep the order they were called.
	return sorted((c for c in frame.children if c.leads_to_error()), key=lambda c: c.site.line)

def _render(frame:CallFrame, depth:int, lines:list):
	lines.append("%s@ %s  %s"%(INDENT*depth, frame.site, frame.label))
	for record in frame.errors:
		lines.append(INDENT*(depth+1) + record.as_text())
	for child in _relevant(frame):
		_render(child, depth+1, lines)
