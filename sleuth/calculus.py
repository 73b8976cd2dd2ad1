"""
Part of the abstract-interpretation based profiler.
These bits represent the data over which the interpreter operates:
the abstract values are types, and the types form a lattice.
The operations on that lattice live in `lattice.py`.

Types are value objects. Each gets a type-number from an equivalence
classifier, so hash-checks and equality comparisons go fast, and the
inference cache can key on tuples of small integers.
Conveniently, type-numbering is just an equivalence classification scheme.
I can reuse the one from booze-tools.
"""
from typing import Iterable
from boozetools.support.foundation import EquivalenceClassifier
from . import syntax

_type_numbering_subsystem = EquivalenceClassifier()

class SleuthType:
	"""Value objects so they can play well with the classifier"""
	def visit(self, visitor:"TypeVisitor"): raise NotImplementedError(type(self))
	def token(self) -> syntax.TypeSymbol: pass

	def __init__(self, *key):
		self._key = key
		self._hash = hash(key)
		self.number = _type_numbering_subsystem.classify(self)
	def __hash__(self): return self._hash
	def __eq__(self, other: "SleuthType"): return type(self) is type(other) and self._key == other._key
	def exemplar(self) -> "SleuthType": return _type_numbering_subsystem.exemplars[self.number]
	def __repr__(self) -> str:
		it = self.visit(Render())
		assert isinstance(it, str), (it, type(self))
		return it

def is_equivalent(s:SleuthType, t:SleuthType) -> bool:
	return s.number == t.number

class ConcreteType(SleuthType):
	"""
	A leaf of the declared hierarchy, possibly with type-arguments.
	An argument of ANY stands for "any instantiation", which is
	how a bare `Ty` in a signature accepts every `Ty{X}`.
	"""
	def __init__(self, symbol:syntax.TypeDeclaration, type_args:Iterable[SleuthType]=()):
		assert isinstance(symbol, syntax.TypeDeclaration) and not symbol.is_abstract, symbol
		self.symbol = symbol
		args = tuple(a.exemplar() for a in type_args) or (ANY,) * symbol.type_arity()
		assert len(args) == symbol.type_arity(), (symbol, args)
		self.type_args = args
		super().__init__(symbol, *(a.number for a in args))
	def visit(self, visitor:"TypeVisitor"): return visitor.on_concrete(self)
	def token(self): return self.symbol

class AbstractType(SleuthType):
	def __init__(self, symbol:syntax.TypeDeclaration):
		assert isinstance(symbol, syntax.TypeDeclaration) and symbol.is_abstract, symbol
		self.symbol = symbol
		super().__init__(symbol)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_abstract(self)
	def token(self): return self.symbol

class UnionType(SleuthType):
	"""
	Do not call this directly: `lattice.union_of` normalizes members first.
	Members are kept in order of their rendering, so reports come out the same every time.
	"""
	def __init__(self, members:Iterable[SleuthType]):
		self.members = tuple(sorted((m.exemplar() for m in members), key=repr))
		assert len(self.members) > 1
		super().__init__(frozenset(m.number for m in self.members))
	def visit(self, visitor:"TypeVisitor"): return visitor.on_union(self)

class TypeVariable(SleuthType):
	"""
	Did I say value-object? Not for type variables! These have identity,
	courtesy of the where-clause parameter that introduced them.
	"""
	def __init__(self, symbol:syntax.TypeParameter, bound:SleuthType):
		self.symbol = symbol
		self.bound = bound.exemplar()
		super().__init__(symbol)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_variable(self)

class MetaType(SleuthType):
	""" The type of a type used as a value: Type{Number}, for instance. """
	def __init__(self, instance:SleuthType):
		self.instance = instance.exemplar()
		super().__init__(self.instance.number)
	def visit(self, visitor:"TypeVisitor"): return visitor.on_meta(self)

class _Bottom(SleuthType):
	"""
	Unreachable; no value. It joins with anything to become that other thing.
	A call with a bottom-typed argument never happens, so it never gets expanded.
	"""
	def visit(self, visitor:"TypeVisitor"): return visitor.on_bottom()

class _Any(SleuthType):
	""" The top of the lattice: it could be anything, so nothing about it gets reported. """
	def visit(self, visitor:"TypeVisitor"): return visitor.on_any()

BOTTOM = _Bottom("Union{}")
ANY = _Any("Any")

###################
#

class TypeVisitor:
	def on_concrete(self, c:ConcreteType): raise NotImplementedError(type(self))
	def on_abstract(self, a:AbstractType): raise NotImplementedError(type(self))
	def on_union(self, u:UnionType): raise NotImplementedError(type(self))
	def on_variable(self, v:TypeVariable): raise NotImplementedError(type(self))
	def on_meta(self, m:MetaType): raise NotImplementedError(type(self))
	def on_bottom(self): raise NotImplementedError(type(self))
	def on_any(self): raise NotImplementedError(type(self))


class Render(TypeVisitor):
	""" Return a string representation of the term. """
	def _generic(self, params:tuple[SleuthType, ...]):
		if params:
			return "{%s}"%(", ".join(t.visit(self) for t in params))
		else:
			return ""
	def on_concrete(self, c: ConcreteType):
		return c.symbol.name+self._generic(c.type_args)
	def on_abstract(self, a: AbstractType):
		return a.symbol.name
	def on_union(self, u: UnionType):
		return "Union{%s}"%(", ".join(m.visit(self) for m in u.members))
	def on_variable(self, v: TypeVariable):
		return v.symbol.name
	def on_meta(self, m: MetaType):
		return "Type{%s}"%m.instance.visit(self)
	def on_bottom(self):
		return "Union{}"
	def on_any(self):
		return "Any"
