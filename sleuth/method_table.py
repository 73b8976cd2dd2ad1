"""
Multiple dispatch, done over types rather than values.

Every function name owns a list of method signatures. A call's argument
types select the candidates whose parameters could each accept the
corresponding argument; the most specific candidate wins, if there is
exactly one. Registration happens once, up front. After that, the table
is frozen and read-only for the rest of the run.
"""
from typing import NamedTuple, Optional, Sequence
from .location import Location
from .calculus import SleuthType, ConcreteType, UnionType, TypeVariable, ANY, BOTTOM, is_equivalent
from .lattice import is_subtype, meet, join

MATCH = "match"
NO_MATCH = "no-match"
AMBIGUOUS = "ambiguous"

class MethodSignature(NamedTuple):
	name: str
	param_types: tuple
	body: object  # Either a MethodDefinition or an intrinsic from the preamble.
	where: Location
	type_vars: tuple = ()

	def arity(self) -> int: return len(self.param_types)

	def key(self) -> tuple:
		""" Two signatures with the same key are the same method, as far as dispatch can tell. """
		params = tuple(repr(p) for p in self.param_types)
		return params + tuple((v.symbol.name, repr(v.bound)) for v in self.type_vars)

	def render(self) -> str:
		text = "%s(%s)"%(self.name, ", ".join("::%r"%p for p in self.param_types))
		if self.type_vars:
			text += " where {%s}"%", ".join("%s<:%r"%(v.symbol.name, v.bound) for v in self.type_vars)
		return text

	def is_at_least_as_specific_as(self, other:"MethodSignature") -> bool:
		return all(map(is_subtype, self.param_types, other.param_types))

class Dispatch(NamedTuple):
	outcome: str
	method: Optional[MethodSignature]
	gamma: dict
	candidates: tuple

class Binder:
	"""
	This treats a signature's parameter type as a pattern to match with an argument type.
	The test is intersection, not inclusion: a parameter qualifies if some value of the
	argument type could inhabit it. If it matches, we want the type-variable bindings
	that made it so.
	"""
	gamma: dict[TypeVariable, SleuthType]

	def __init__(self, gamma=None):
		self.gamma = dict(gamma or {})
		self.ok = True

	def tour(self, formals:Sequence[SleuthType], actuals:Sequence[SleuthType]):
		assert len(formals) == len(actuals)
		for f, a in zip(formals, actuals):
			if self.ok: self.bind(f, a)
		return self.ok

	def fail(self):
		self.ok = False

	def bind(self, formal:SleuthType, actual:SleuthType):
		if formal is ANY or actual is ANY: return
		if actual is BOTTOM: return self.fail()
		if isinstance(actual, TypeVariable): actual = actual.bound
		if isinstance(actual, UnionType): return self._bind_union(formal, actual)
		if isinstance(formal, TypeVariable): return self._bind_variable(formal, meet(actual, formal.bound))
		if isinstance(formal, ConcreteType) and isinstance(actual, ConcreteType):
			if formal.symbol is not actual.symbol: return self.fail()
			for param, f, a in zip(formal.symbol.type_params, formal.type_args, actual.type_args):
				if not self.ok: return
				if param.is_covariant(): self.bind(f, a)
				else: self._bind_exactly(f, a)
			return
		if meet(formal, actual) is BOTTOM: self.fail()

	def _bind_exactly(self, formal:SleuthType, actual:SleuthType):
		# An invariant position: the argument must be precisely the parameter, up to variables and wildcards.
		if formal is ANY or actual is ANY: return
		if isinstance(formal, TypeVariable):
			if is_subtype(actual, formal.bound): self._bind_variable(formal, actual, exact=True)
			else: self.fail()
		elif isinstance(formal, ConcreteType) and isinstance(actual, ConcreteType) and formal.symbol is actual.symbol:
			for param, f, a in zip(formal.symbol.type_params, formal.type_args, actual.type_args):
				if self.ok: self._bind_exactly(f, a)
		elif not is_equivalent(formal, actual): self.fail()

	def _bind_variable(self, var:TypeVariable, actual:SleuthType, exact=False):
		if actual is BOTTOM: return self.fail()
		if var not in self.gamma: self.gamma[var] = actual
		elif exact and not is_equivalent(self.gamma[var], actual): self.fail()
		else: self.gamma[var] = join(self.gamma[var], actual)

	def _bind_union(self, formal:SleuthType, actual:UnionType):
		survivors = []
		for member in actual.members:
			trial = Binder(self.gamma)
			trial.bind(formal, member)
			if trial.ok: survivors.append(trial.gamma)
		if not survivors: return self.fail()
		for gamma in survivors:
			for var, t in gamma.items():
				self.gamma[var] = join(self.gamma[var], t) if var in self.gamma else t

class MethodTable:
	def __init__(self):
		self._methods : dict[str, dict[tuple, MethodSignature]] = {}
		self._frozen = False

	def register(self, sig:MethodSignature) -> Optional[MethodSignature]:
		"""
		The last definition of any given signature wins.
		Returns whatever it replaced, so the caller can mention it.
		"""
		assert not self._frozen, "Method table is frozen."
		space = self._methods.setdefault(sig.name, {})
		prior = space.get(sig.key())
		space[sig.key()] = sig
		return prior

	def freeze(self):
		self._frozen = True

	def knows(self, name:str) -> bool: return name in self._methods

	def methods(self, name:str) -> list[MethodSignature]:
		return list(self._methods.get(name, {}).values())

	def lookup(self, name:str, arg_types:Sequence[SleuthType]) -> Dispatch:
		candidates = []
		for sig in self._methods.get(name, {}).values():
			if sig.arity() != len(arg_types): continue
			binder = Binder()
			if binder.tour(sig.param_types, arg_types):
				candidates.append((sig, binder.gamma))
		if not candidates:
			return Dispatch(NO_MATCH, None, {}, ())
		maximal = [
			(sig, gamma) for sig, gamma in candidates
			if all(sig is other or sig.is_at_least_as_specific_as(other) for other, _ in candidates)
		]
		signatures = tuple(sig for sig, _ in candidates)
		if len(maximal) == 1:
			sig, gamma = maximal[0]
			return Dispatch(MATCH, sig, gamma, signatures)
		return Dispatch(AMBIGUOUS, None, {}, signatures)
