"""
Build the built-in type hierarchy and the intrinsic methods.
Also, the map from Python literal values to their built-in types.

Intrinsics have no body to interpret. Each knows how to compute its own
result type from the argument types, and maybe complain along the way.
"""
from typing import Sequence
from .location import BUILT_IN
from . import syntax
from .calculus import SleuthType, ConcreteType, AbstractType, UnionType, TypeVariable, MetaType, ANY, BOTTOM
from .lattice import Rewriter, is_subtype, union_of
from .method_table import MethodSignature
from .diagnostics import Report

built_in_types : list[syntax.TypeDeclaration] = []

def _declare(name:str, parent:syntax.TypeDeclaration=None, is_abstract=False) -> syntax.TypeDeclaration:
	decl = syntax.TypeDeclaration(
		name, BUILT_IN, super_name=parent.name if parent else None,
		is_abstract=is_abstract, is_primitive=not is_abstract,
	)
	decl.supertype = parent
	built_in_types.append(decl)
	return decl

NUMBER = _declare("Number", is_abstract=True)
REAL = _declare("Real", NUMBER, is_abstract=True)
INTEGER = _declare("Integer", REAL, is_abstract=True)
ABSTRACT_FLOAT = _declare("AbstractFloat", REAL, is_abstract=True)
ABSTRACT_STRING = _declare("AbstractString", is_abstract=True)
INT = _declare("Int", INTEGER)
BOOL = _declare("Bool", INTEGER)
FLOAT = _declare("Float", ABSTRACT_FLOAT)
STRING = _declare("String", ABSTRACT_STRING)
NOTHING = _declare("Nothing")

number_type = AbstractType(NUMBER)
real_type = AbstractType(REAL)
integer_type = AbstractType(INTEGER)
abstract_string_type = AbstractType(ABSTRACT_STRING)
int_type = ConcreteType(INT)
bool_type = ConcreteType(BOOL)
float_type = ConcreteType(FLOAT)
string_type = ConcreteType(STRING)
nothing_type = ConcreteType(NOTHING)

def literal_type(value) -> SleuthType:
	# bool before int, because Python considers True an int.
	if value is None: return nothing_type
	if isinstance(value, bool): return bool_type
	if isinstance(value, int): return int_type
	if isinstance(value, float): return float_type
	if isinstance(value, str): return string_type
	raise TypeError(value)

###############################################################################

class Intrinsic:
	""" A built-in method whose result is its declared result type, with type-variables filled in. """
	def __init__(self, result:SleuthType):
		self.result = result
	def __repr__(self): return "<intrinsic -> %r>"%self.result
	def apply(self, engine, frame, arg_types:Sequence[SleuthType], gamma) -> SleuthType:
		return self.result.visit(Rewriter(gamma))

class Constructor(Intrinsic):
	""" The default constructor of a structured type takes one argument per field. """
	def __init__(self, decl:syntax.TypeDeclaration, type_vars:Sequence[TypeVariable]):
		self.decl = decl
		self.type_vars = tuple(type_vars)
		super().__init__(ConcreteType(decl, self.type_vars))
	def apply(self, engine, frame, arg_types, gamma) -> SleuthType:
		# A type-parameter no field mentions stays a wildcard.
		return ConcreteType(self.decl, [gamma.get(v, ANY) for v in self.type_vars]).exemplar()

class Conversion(Intrinsic):
	"""
	convert(T, x) yields x if it is already a T, or T if x is some number and so is T.
	Otherwise it fails, once for each case of x that cannot make the trip.
	"""
	def __init__(self):
		super().__init__(ANY)
	def apply(self, engine, frame, arg_types, gamma) -> SleuthType:
		target, value = arg_types
		if target is ANY: return ANY
		if not isinstance(target, MetaType):
			Report.invalid_builtin_call(frame, "convert needs a type to convert to, not a value of type %r"%target)
			return BOTTOM
		target = target.instance
		results = []
		for case in (value.members if isinstance(value, UnionType) else (value,)):
			if case is ANY: results.append(target)
			elif is_subtype(case, target): results.append(case)
			elif is_subtype(case, number_type) and is_subtype(target, number_type): results.append(target)
			else: Report.conversion_failure(frame, frame.site, case, target)
		return union_of(results)

###############################################################################

def _variable(name:str, bound:SleuthType) -> TypeVariable:
	return TypeVariable(syntax.TypeParameter(name, BUILT_IN), bound)

def intrinsic_methods() -> list[MethodSignature]:
	methods = []
	def method(name, params, body, type_vars=()):
		methods.append(MethodSignature(name, tuple(params), body, BUILT_IN, tuple(type_vars)))
	def binary(glyphs, operand, result):
		for glyph in glyphs.split():
			method(glyph, (operand, operand), Intrinsic(result))

	binary("+ - *", integer_type, int_type)
	binary("+ - *", real_type, float_type)
	binary("*", abstract_string_type, string_type)
	binary("/", real_type, float_type)
	binary("div rem", integer_type, int_type)
	binary("< <= > >=", real_type, bool_type)
	binary("< <= > >=", abstract_string_type, bool_type)
	binary("== !=", ANY, bool_type)

	t = _variable("T", real_type)
	method("-", (t,), Intrinsic(t), (t,))
	method("+", (t,), Intrinsic(t), (t,))
	method("!", (bool_type,), Intrinsic(bool_type))
	method("length", (abstract_string_type,), Intrinsic(int_type))
	method("string", (ANY,), Intrinsic(string_type))
	method("print", (ANY,), Intrinsic(nothing_type))
	method("println", (ANY,), Intrinsic(nothing_type))
	for name in "zero one".split():
		n = _variable("T", number_type)
		method(name, (n,), Intrinsic(n), (n,))
	method("convert", (ANY, ANY), Conversion())
	return methods
