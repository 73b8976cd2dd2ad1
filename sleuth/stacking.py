"""
Two related structures live here.

CallFrames make the tree the report is built from: one node per call
the interpreter considered, holding the argument types it saw, the
type it concluded, and any errors found right there.

Activations make the dynamic stack while the interpreter works: one per
method body in progress, holding the abstract environment and the bits
the fixpoint needs to notice recursion.
"""
from typing import Optional
from .location import Location
from .calculus import SleuthType, BOTTOM
from .diagnostics import ErrorRecord

class CallFrame:
	return_type: SleuthType
	children: list["CallFrame"]
	errors: list[ErrorRecord]

	def __init__(self, site:Location, name:str, label:str, arg_types=()):
		self.site = site
		self.name = name
		self.label = label
		self.arg_types = tuple(arg_types)
		self.return_type = BOTTOM
		self.children = []
		self.errors = []
		self.cached = False  # True for a stub standing in for a result computed elsewhere.

	def __repr__(self): return "<%s @ %s%s>"%(self.label, self.site, " (cached)" if self.cached else "")

	def adopt(self, child:"CallFrame") -> "CallFrame":
		self.children.append(child)
		return child

	def note(self, record:ErrorRecord):
		if record not in self.errors: self.errors.append(record)

	def mark(self) -> tuple[int, int]:
		return len(self.children), len(self.errors)

	def rollback(self, mark:tuple[int, int]):
		""" Forget whatever a discarded iteration of some fixpoint found. """
		del self.children[mark[0]:]
		del self.errors[mark[1]:]

	def error_count(self) -> int:
		return len(self.errors) + sum(c.error_count() for c in self.children)

	def leads_to_error(self) -> bool:
		return bool(self.errors) or any(c.leads_to_error() for c in self.children)

class Activation:
	dynamic_link: Optional["Activation"]
	locals: dict[str, SleuthType]
	is_recursion_head: bool = False
	is_recursion_body: bool = False

	def __init__(self, dynamic_link:Optional["Activation"], call_frame:CallFrame, memo_key:tuple=()):
		self.dynamic_link = dynamic_link
		self.call_frame = call_frame
		self.memo_key = memo_key
		self.locals = {}
		self.gamma = {}  # Where-clause type variables, as bound by dispatch.
		self.returns = BOTTOM
		self.depth = 0 if dynamic_link is None else dynamic_link.depth + 1

	def holds(self, name:str) -> bool: return name in self.locals
	def assign(self, name:str, value:SleuthType):
		self.locals[name] = value
		return value
	def update(self, pairs): self.locals.update(pairs)
	def fetch(self, name:str) -> SleuthType: return self.locals[name]

	def reset(self):
		self.locals.clear()
		self.returns = BOTTOM
