"""
Two kinds of trouble get reported here.

The interesting kind is the type-level bug in the program under study.
Those are collected as ErrorRecords on the call frame where they happen,
and never thrown. Analysis carries on around them.

The other kind is trouble with the tool's own input: unreadable files,
malformed IR, a broken type hierarchy. Those are collected as issues
(with a picture of the offending source, if there is one) and then the
run aborts with a Yuck (see `resolution.py`) naming the phase that found them.
"""
import sys
from enum import Enum
from functools import lru_cache
from typing import NamedTuple, Sequence, Optional
from pathlib import Path
from boozetools.support.failureprone import SourceText, illustration
from .location import Location

class Kind(Enum):
	UNDEFINED_BINDING = "UndefinedBinding"
	NO_MATCHING_METHOD = "NoMatchingMethod"
	AMBIGUOUS_METHOD = "AmbiguousMethod"
	INVALID_FIELD_ACCESS = "InvalidFieldAccess"
	INVALID_BUILTIN_CALL = "InvalidBuiltinCall"
	TYPE_CONVERSION_FAILURE = "TypeConversionFailure"

class ErrorRecord(NamedTuple):
	kind: Kind
	message: str
	call: str        # The call, rendered with its resolved argument types.
	where: Location
	def as_text(self): return "[%s] %s"%(self.kind.value, self.message)

def _signature(name:str, arg_types:Sequence) -> str:
	return "%s(%s)"%(name, ", ".join("::%r"%t for t in arg_types))

class Report:
	""" Collects tool-level issues and files diagnostics onto call frames. """
	_issues : list["Pic"]

	def __init__(self, *, verbose:int=0):
		self._verbose = verbose or 0   # Because None is incomparable.
		self._issues = []

	def ok(self): return not self._issues
	def sick(self): return bool(self._issues)

	def issue(self, it:"Pic"):
		self._issues.append(it)

	def reset(self):
		self._issues.clear()

	def info(self, *args):
		if self._verbose:
			print(*args, file=sys.stderr)

	def trace(self, depth:int, *args):
		if self._verbose > 1:
			print("  "*depth, *args, file=sys.stderr)

	def complain_to_console(self):
		""" Emit all the issues to the console. """
		if self._issues:
			print("*"*60, file=sys.stderr)
		for i in self._issues:
			print("  -"*20, file=sys.stderr)
			print(i.as_text(), file=sys.stderr)
		sys.stderr.flush()

	def assert_no_issues(self, message):
		""" Does what it says on the tin """
		if self._issues:
			self.complain_to_console()
			raise AssertionError(message)

	def issue_text(self) -> str:
		return "\n".join(i.as_text() for i in self._issues)

	# Methods the front end is likely to call:

	def no_such_file(self, path:Path):
		self.issue(Pic("I see no file called %s"%path, []))

	def broken_file(self, path:Path, text:str, line:int, col:int, hint:str):
		intro = "Something went pear-shaped while trying to read %s"%path
		source = SourceText(text, filename=str(path))
		picture = illustration(source.line_of_text(line), col, 1, prefix='% 6d |'%line, caption=hint)
		self.issue(Pic(intro, [], [picture]))

	def malformed(self, where:Location, hint:str):
		self.issue(Pic("Malformed IR", [Annotation(where, hint)]))

	# Methods the resolution pass might call:

	def redefined(self, what:str, first:Location, guilty:Location):
		intro = "This %s is defined more than once."%what
		self.issue(Pic(intro, [Annotation(first, "first here"), Annotation(guilty, "again here")]))

	def undefined_type(self, where:Location, name:str):
		self.issue(Pic("There is no type called %s."%name, [Annotation(where)]))

	def wrong_type_arity(self, where:Location, name:str, given:int, needed:int):
		intro = "%s needs %d type-argument(s), but got %d."%(name, needed, given)
		self.issue(Pic(intro, [Annotation(where)]))

	def bad_supertype(self, where:Location, name:str, super_name:str):
		intro = "%s cannot be a subtype of %s, which is not an abstract type."%(name, super_name)
		self.issue(Pic(intro, [Annotation(where)]))

	def circular_hierarchy(self, cycle:Sequence):
		intro = "These types form a circle of supertypes:"
		self.issue(Pic(intro, [Annotation(d.where, d.name) for d in cycle]))

	# Methods the abstract interpreter calls. These annotate the frame rather than the report.

	@staticmethod
	def undefined_binding(frame, where:Location, name:str):
		frame.note(ErrorRecord(Kind.UNDEFINED_BINDING, "%s not defined"%name, frame.label, where))

	@staticmethod
	def no_matching_method(frame, name:str, arg_types:Sequence):
		message = "no method matching %s"%_signature(name, arg_types)
		frame.note(ErrorRecord(Kind.NO_MATCHING_METHOD, message, frame.label, frame.site))

	@staticmethod
	def ambiguous_method(frame, name:str, arg_types:Sequence, candidates:Sequence):
		message = "%s is ambiguous among %s"%(_signature(name, arg_types), ", ".join(c.render() for c in candidates))
		frame.note(ErrorRecord(Kind.AMBIGUOUS_METHOD, message, frame.label, frame.site))

	@staticmethod
	def invalid_field_access(frame, type_, field_name:str):
		message = "type %r has no field %s"%(type_, field_name)
		frame.note(ErrorRecord(Kind.INVALID_FIELD_ACCESS, message, frame.label, frame.site))

	@staticmethod
	def field_of_a_type(frame, meta, field_name:str):
		message = "%r is a type, not an instance; it has no field %s"%(meta, field_name)
		frame.note(ErrorRecord(Kind.INVALID_FIELD_ACCESS, message, frame.label, frame.site))

	@staticmethod
	def invalid_builtin_call(frame, message:str):
		frame.note(ErrorRecord(Kind.INVALID_BUILTIN_CALL, message, frame.label, frame.site))

	@staticmethod
	def conversion_failure(frame, where:Location, given, target):
		message = "cannot convert a value of type %r to %r"%(given, target)
		frame.note(ErrorRecord(Kind.TYPE_CONVERSION_FAILURE, message, frame.label, where))

	@staticmethod
	def non_boolean_condition(frame, where:Location, given):
		message = "non-boolean (%r) used in boolean context"%given
		frame.note(ErrorRecord(Kind.TYPE_CONVERSION_FAILURE, message, frame.label, where))

class Annotation:
	""" Points at a line of a source file, with an optional caption. """
	def __init__(self, where:Location, caption:str=""):
		self.where = where
		self.caption = caption
	def illustrate(self):
		source = _fetch(self.where.path)
		if source is None or self.where.line < 1:
			return "  at %s %s"%(self.where, self.caption)
		single_line = source.line_of_text(self.where.line)
		return illustration(single_line, 0, len(single_line.rstrip()), prefix='% 6d |'%self.where.line, caption=self.caption)

class Pic:
	def __init__(self, intro:str, anns:list[Annotation], footer=()):
		self._intro, self._anns, self._footer = intro, anns, footer
	def as_text(self):
		lines = [self._intro, ""]
		path = None
		for ann in self._anns:
			if ann.where.path != path:
				path = ann.where.path
				lines.append(str(path))
			lines.append(ann.illustrate())
		lines.extend(self._footer)
		return '\n'.join(lines)

@lru_cache(5)
def _fetch(path) -> Optional[SourceText]:
	try:
		with open(path, "r", encoding="utf-8") as fh:
			return SourceText(fh.read(), filename=str(path))
	except OSError:
		return None

def forget_source_texts():
	""" Files change under watch mode; pictures must show what is there now. """
	_fetch.cache_clear()
