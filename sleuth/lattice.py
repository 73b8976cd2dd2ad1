"""
Operations on the type lattice.

The declared hierarchy is single-inheritance, so two declared types
either nest (one is an ancestor of the other) or are disjoint.
That makes meets easy and leaves the interesting work to joins,
which must stay finite-height for the fixpoint to terminate:
a union may grow only so wide before it collapses to the nearest
common declared ancestor, and from there it's a short hop to Any.
"""
from functools import reduce
from itertools import product
from typing import Iterable, Sequence, Mapping
from .calculus import (
	SleuthType, ConcreteType, AbstractType, UnionType, TypeVariable, MetaType,
	TypeVisitor, BOTTOM, ANY, is_equivalent,
)
from .limits import DEFAULT_LIMITS
from . import syntax

LEAVES = Mapping[syntax.TypeDeclaration, Sequence[ConcreteType]]

def is_subtype(a:SleuthType, b:SleuthType) -> bool:
	if a.number == b.number or a is BOTTOM or b is ANY: return True
	if a is ANY or b is BOTTOM: return False
	if isinstance(a, UnionType): return all(is_subtype(m, b) for m in a.members)
	if isinstance(a, TypeVariable): return is_subtype(a.bound, b)
	# A variable stands for some one type within its bound, not for all of them.
	if isinstance(b, TypeVariable): return False
	if isinstance(b, UnionType): return any(is_subtype(a, m) for m in b.members)
	if isinstance(a, MetaType) or isinstance(b, MetaType):
		return isinstance(a, MetaType) and isinstance(b, MetaType) and is_subtype(a.instance, b.instance)
	if isinstance(b, AbstractType):
		return any(decl is b.symbol for decl in a.symbol.ancestors())
	if isinstance(b, ConcreteType):
		if not isinstance(a, ConcreteType) or a.symbol is not b.symbol: return False
		return all(map(_argument_fits, b.symbol.type_params, a.type_args, b.type_args))
	return False

def _argument_fits(param:syntax.TypeParameter, x:SleuthType, y:SleuthType) -> bool:
	# An Any argument on the right is the wildcard: `Ty` accepts every `Ty{X}`.
	if y is ANY: return True
	if param.is_covariant(): return is_subtype(x, y)
	if isinstance(y, TypeVariable): return is_subtype(x, y.bound)
	return is_equivalent(x, y)

def union_of(types:Iterable[SleuthType]) -> SleuthType:
	"""
	Flatten, drop Bottom, and keep only the maximal members.
	An Any anywhere swallows the lot.
	"""
	keep = []
	for t in types:
		for m in (t.members if isinstance(t, UnionType) else (t,)):
			if m is ANY: return ANY
			if m is BOTTOM or any(is_subtype(m, k) for k in keep): continue
			keep = [k for k in keep if not is_subtype(k, m)]
			keep.append(m)
	if not keep: return BOTTOM
	if len(keep) == 1: return keep[0].exemplar()
	return UnionType(keep).exemplar()

def join(a:SleuthType, b:SleuthType, union_limit:int=DEFAULT_LIMITS.union_limit) -> SleuthType:
	if is_subtype(a, b): return b
	if is_subtype(b, a): return a
	united = union_of((a, b))
	if isinstance(united, UnionType) and len(united.members) > union_limit:
		return reduce(common_ancestor, united.members)
	return united

def join_all(types:Iterable[SleuthType], union_limit:int=DEFAULT_LIMITS.union_limit) -> SleuthType:
	result = BOTTOM
	for t in types: result = join(result, t, union_limit)
	return result

def common_ancestor(a:SleuthType, b:SleuthType) -> SleuthType:
	""" The nearest declared type above both, or Any if there is none. """
	if is_subtype(a, b): return b
	if is_subtype(b, a): return a
	if isinstance(a, UnionType): return reduce(common_ancestor, a.members, b)
	if isinstance(b, UnionType): return reduce(common_ancestor, b.members, a)
	if isinstance(a, TypeVariable): return common_ancestor(a.bound, b)
	if isinstance(b, TypeVariable): return common_ancestor(a, b.bound)
	if isinstance(a, ConcreteType) and isinstance(b, ConcreteType) and a.symbol is b.symbol:
		args = []
		for param, x, y in zip(a.symbol.type_params, a.type_args, b.type_args):
			if param.is_covariant(): args.append(common_ancestor(x, y))
			else: args.append(x if is_equivalent(x, y) else ANY)
		return ConcreteType(a.symbol, args).exemplar()
	if isinstance(a, (ConcreteType, AbstractType)) and isinstance(b, (ConcreteType, AbstractType)):
		theirs = set(b.symbol.ancestors())
		for decl in a.symbol.ancestors():
			if decl.is_abstract and decl in theirs: return AbstractType(decl).exemplar()
	return ANY

def meet(a:SleuthType, b:SleuthType) -> SleuthType:
	""" Intersection: what a value of type `a` can be, given that it's also a `b`. """
	if a is BOTTOM or b is BOTTOM: return BOTTOM
	if a is ANY: return b
	if b is ANY: return a
	if isinstance(a, TypeVariable): return meet(a.bound, b)
	if isinstance(b, TypeVariable): return meet(a, b.bound)
	if isinstance(a, UnionType): return union_of(meet(m, b) for m in a.members)
	if isinstance(b, UnionType): return union_of(meet(a, m) for m in b.members)
	if is_subtype(a, b): return a
	if is_subtype(b, a): return b
	if isinstance(a, ConcreteType) and isinstance(b, ConcreteType) and a.symbol is b.symbol:
		args = []
		for param, x, y in zip(a.symbol.type_params, a.type_args, b.type_args):
			if param.is_covariant(): z = meet(x, y)
			elif x is ANY: z = y
			elif y is ANY: z = x
			elif is_equivalent(x, y): z = x
			else: z = BOTTOM
			if z is BOTTOM: return BOTTOM
			args.append(z)
		return ConcreteType(a.symbol, args).exemplar()
	return BOTTOM

def difference(a:SleuthType, b:SleuthType, leaves:LEAVES=None) -> SleuthType:
	"""
	What a value of type `a` can be, given that it's NOT a `b`.
	This is only as precise as the hierarchy permits: an abstract type
	with known concrete leaves gives up those leaves that fall under `b`.
	"""
	if is_subtype(a, b): return BOTTOM
	if isinstance(a, UnionType): return union_of(difference(m, b, leaves) for m in a.members)
	if isinstance(a, AbstractType) and leaves:
		cases = leaves.get(a.symbol, ())
		remaining = [c for c in cases if not is_subtype(c, b)]
		if len(remaining) < len(cases): return union_of(remaining)
	return a

def widen(history:Sequence[SleuthType], threshold:int=DEFAULT_LIMITS.widen_threshold) -> SleuthType:
	"""
	Given the succession of types seen at some program point without converging:
	within the threshold, their join; past it, their nearest abstract ancestor or else Any.
	"""
	distinct = list({t.number: t for t in history}.values())
	if len(distinct) <= threshold: return join_all(distinct)
	top = reduce(common_ancestor, distinct, BOTTOM)
	return top if isinstance(top, AbstractType) else ANY

def cases_of(t:SleuthType, leaves:LEAVES) -> list[SleuthType]:
	if isinstance(t, UnionType):
		return [c for m in t.members for c in cases_of(m, leaves)]
	if isinstance(t, AbstractType) and leaves.get(t.symbol):
		return list(leaves[t.symbol])
	return [t]

def split_cases(arg_types:Sequence[SleuthType], leaves:LEAVES, max_split:int=DEFAULT_LIMITS.max_split) -> list[tuple]:
	"""
	Break a tuple of argument types into the cases dispatch must consider separately.
	Abstract types split into their concrete leaves only when the whole product fits;
	otherwise unions alone; otherwise nothing splits, and dispatch sees the broad types.
	"""
	options = [cases_of(t, leaves) for t in arg_types]
	if _product_size(options) > max_split:
		options = [list(t.members) if isinstance(t, UnionType) else [t] for t in arg_types]
		if _product_size(options) > max_split:
			return [tuple(arg_types)]
	return list(product(*options))

def _product_size(options) -> int:
	return reduce(lambda n, o: n * len(o), options, 1)

class Rewriter(TypeVisitor):
	"""
	Substitute bound type-variables in a result type.
	An unbound variable stands for anything within its bound.
	"""
	def __init__(self, gamma:Mapping[TypeVariable, SleuthType]):
		self._gamma = gamma
	def on_concrete(self, c: ConcreteType):
		if c.type_args: return ConcreteType(c.symbol, [a.visit(self) for a in c.type_args]).exemplar()
		return c
	def on_abstract(self, a: AbstractType): return a
	def on_union(self, u: UnionType): return union_of(m.visit(self) for m in u.members)
	def on_variable(self, v: TypeVariable): return self._gamma.get(v, v.bound)
	def on_meta(self, m: MetaType): return MetaType(m.instance.visit(self)).exemplar()
	def on_bottom(self): return BOTTOM
	def on_any(self): return ANY
