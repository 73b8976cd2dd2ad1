"""
Memoized inference results, keyed on a function name and the type-numbers of its arguments.

An entry begins life as a placeholder (on the stack, not yet solved) and ends
sealed. Re-entering a placeholder is recursion: the interpreter gets the best
guess so far, and the frame that owns the placeholder iterates until it stops
changing. Sealed entries never change again, but an iteration that gets
thrown away takes the entries it sealed with it.

The cache lives for one entry call. Anything bigger than its caps means the
analysis has blown up somewhere, and that entry call gets abandoned.
"""
from typing import NamedTuple, Sequence
from .calculus import SleuthType, BOTTOM
from .diagnostics import ErrorRecord
from .limits import DEFAULT_LIMITS

class ResourceLimitExceeded(Exception):
	""" Aborts one entry call, not the run. """
	def __init__(self, what:str, limit:int):
		super().__init__(what, limit)
		self.what = what
		self.limit = limit
	def __str__(self): return "exceeded the limit of %d %s"%(self.limit, self.what)

class InferenceResult(NamedTuple):
	return_type: SleuthType
	errors: tuple[ErrorRecord, ...]
	converged: bool

class TypeMemo:
	def __init__(self):
		self.is_solved = False
		self.is_on_stack = False
		self.guess = BOTTOM
		self.history = []
		self.errors = ()
	def __str__(self): return "[Memo: solved=%s, stacked=%s, type=%s]"%(self.is_solved, self.is_on_stack, self.guess)
	def result(self) -> InferenceResult:
		return InferenceResult(self.guess, self.errors, self.is_solved)

class InferenceCache:
	_memo: dict[tuple, TypeMemo]
	_sealed: list[tuple]  # Keys, in the order they were sealed.

	def __init__(self, max_entries:int=DEFAULT_LIMITS.max_cache_entries):
		self._max_entries = max_entries
		self._memo = {}
		self._sealed = []

	def __len__(self): return len(self._memo)

	def clear(self):
		self._memo.clear()
		self._sealed.clear()

	@staticmethod
	def key(name:str, arg_types:Sequence[SleuthType]) -> tuple:
		return name, tuple(t.number for t in arg_types)

	def fetch(self, key:tuple) -> TypeMemo:
		""" Find the memo for this key, starting a fresh placeholder if need be. """
		try: return self._memo[key]
		except KeyError: pass
		if len(self._memo) >= self._max_entries:
			raise ResourceLimitExceeded("distinct inference-cache entries", self._max_entries)
		memo = self._memo[key] = TypeMemo()
		return memo

	def seal(self, key:tuple, return_type:SleuthType, errors=()):
		memo = self._memo[key]
		assert not memo.is_solved, "Sealed entries are immutable."
		memo.guess = return_type
		memo.errors = tuple(errors)
		memo.is_solved = True
		self._sealed.append(key)

	def mark(self) -> int:
		return len(self._sealed)

	def rollback(self, mark:int):
		"""
		Discard whatever got sealed since the mark. It all came from an iteration
		being thrown away, along with the frames that would have shown its errors.
		Anything still on the stack was never sealed, so it stays.
		"""
		for key in self._sealed[mark:]:
			del self._memo[key]
		del self._sealed[mark:]
