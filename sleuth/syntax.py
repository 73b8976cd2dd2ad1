"""
The set of IR nodes in simple form.
The front end calls these constructors with already-expanded definitions.
Class-level type annotations make peace with the IDE wherever later passes add fields.
"""
from typing import Optional, Sequence
from boozetools.support.foundation import Visitor
from .location import Location, BUILT_IN
from .ontology import (
	Phrase, Symbol, TypeSymbol, TermSymbol,
	TypeExpression, ValueExpression, Statement,
)

VARIANCES = ("invariant", "covariant")

class TypeParameter(TypeSymbol):
	bound: "SleuthType"  # Resolution fills this in.
	def __init__(self, name:str, where:Location=BUILT_IN, variance:str="invariant", bound_expr:Optional[TypeExpression]=None):
		super().__init__(name, where)
		assert variance in VARIANCES, variance
		self.variance = variance
		self.bound_expr = bound_expr
	def type_arity(self): return 0
	def is_covariant(self): return self.variance == "covariant"

class FieldDefinition(Symbol):
	def __init__(self, name:str, where:Location, type_expr:Optional[TypeExpression]):
		super().__init__(name, where)
		self.type_expr = type_expr

class TypeDeclaration(TypeSymbol):
	"""
	Abstract types form the interior of a single-inheritance tree.
	Concrete types are its leaves. Primitive types are concrete types
	about whose structure nothing is known.
	"""
	supertype: Optional["TypeDeclaration"]  # Resolution fills this in. None means Any.

	def __init__(
			self, name:str, where:Location=BUILT_IN, *,
			super_name:Optional[str]=None, is_abstract=False, is_primitive=False,
			type_params:Sequence[TypeParameter]=(), fields:Sequence[FieldDefinition]=(),
	):
		super().__init__(name, where)
		self.super_name = super_name
		self.is_abstract = is_abstract
		self.is_primitive = is_primitive
		self.type_params = tuple(type_params)
		self.fields = tuple(fields)
		self.field_space = {f.name: f for f in self.fields}
		self.supertype = None

	def type_arity(self): return len(self.type_params)

	def ancestors(self):
		""" Yield self, then each supertype in turn, stopping short of Any. """
		decl = self
		while decl is not None:
			yield decl
			decl = decl.supertype

###############################################################################

class TypeCall(TypeExpression):
	dfn: TypeSymbol  # Resolution fills this in.
	def __init__(self, name:str, where:Location, arguments:Sequence[TypeExpression]=()):
		self.name = name
		self.where = where
		self.arguments = tuple(arguments)
	def __repr__(self):
		return "%s{%s}"%(self.name, self.arguments) if self.arguments else self.name

class UnionSpec(TypeExpression):
	def __init__(self, where:Location, members:Sequence[TypeExpression]):
		self.where = where
		self.members = tuple(members)

class AnySpec(TypeExpression):
	def __init__(self, where:Location):
		self.where = where

###############################################################################

class FormalParameter(TermSymbol):
	def __init__(self, name:str, where:Location, type_expr:Optional[TypeExpression]):
		super().__init__(name, where)
		self.type_expr = type_expr
	def __repr__(self): return "<:%s:%s>"%(self.name, self.type_expr)

class MethodDefinition(TermSymbol):
	def __init__(self, name:str, where:Location, params:Sequence[FormalParameter], type_params:Sequence[TypeParameter], body:Sequence[Statement]):
		super().__init__(name, where)
		self.params = tuple(params)
		self.type_params = tuple(type_params)
		self.body = tuple(body)
	def signature_text(self):
		return "%s(%s)"%(self.name, ", ".join(
			p.name if p.type_expr is None else "%s::%s"%(p.name, unparse(p.type_expr))
			for p in self.params
		))

class Module(Phrase):
	def __init__(self, path:str, types, methods, global_defs, entries):
		self.path = path
		self.where = Location(path, 0)
		self.types : list[TypeDeclaration] = types
		self.methods : list[MethodDefinition] = methods
		self.globals : list["Assign"] = global_defs
		self.entries : list["Call"] = entries

###############################################################################
# Statements

class Assign(Statement):
	def __init__(self, where:Location, name:str, expr:ValueExpression):
		self.where, self.name, self.expr = where, name, expr

class Return(Statement):
	def __init__(self, where:Location, expr:ValueExpression):
		self.where, self.expr = where, expr

class ExprStmt(Statement):
	def __init__(self, where:Location, expr:ValueExpression):
		self.where, self.expr = where, expr

class IfStmt(Statement):
	def __init__(self, where:Location, if_part:ValueExpression, then_body:Sequence[Statement], else_body:Sequence[Statement]):
		self.where, self.if_part = where, if_part
		self.then_body, self.else_body = tuple(then_body), tuple(else_body)

class While(Statement):
	def __init__(self, where:Location, if_part:ValueExpression, body:Sequence[Statement]):
		self.where, self.if_part, self.body = where, if_part, tuple(body)

###############################################################################
# Expressions

class Literal(ValueExpression):
	def __init__(self, where:Location, value):
		self.where, self.value = where, value

class TypeLiteral(ValueExpression):
	""" A type used as a value, as in the first argument of `convert(Number, x)` """
	def __init__(self, where:Location, type_expr:TypeExpression):
		self.where, self.type_expr = where, type_expr

class Instance(ValueExpression):
	""" Some value of the given type. Entry calls use these to supply argument types directly. """
	def __init__(self, where:Location, type_expr:TypeExpression):
		self.where, self.type_expr = where, type_expr

class Lookup(ValueExpression):
	def __init__(self, where:Location, name:str):
		self.where, self.name = where, name
	def __repr__(self): return "<ref:%s>"%self.name

class Call(ValueExpression):
	def __init__(self, where:Location, name:str, args:Sequence[ValueExpression]):
		self.where, self.name, self.args = where, name, tuple(args)

class BinExp(ValueExpression):
	def __init__(self, where:Location, op:str, lhs:ValueExpression, rhs:ValueExpression):
		self.where, self.op, self.lhs, self.rhs = where, op, lhs, rhs

class UnaryExp(ValueExpression):
	def __init__(self, where:Location, op:str, arg:ValueExpression):
		self.where, self.op, self.arg = where, op, arg

class FieldReference(ValueExpression):
	def __init__(self, where:Location, lhs:ValueExpression, field_name:str):
		self.where, self.lhs, self.field_name = where, lhs, field_name

class IsA(ValueExpression):
	def __init__(self, where:Location, subject:ValueExpression, type_expr:TypeExpression):
		self.where, self.subject, self.type_expr = where, subject, type_expr

class Cond(ValueExpression):
	def __init__(self, where:Location, if_part:ValueExpression, then_part:ValueExpression, else_part:ValueExpression):
		self.where = where
		self.if_part, self.then_part, self.else_part = if_part, then_part, else_part

###############################################################################

class Unparse(Visitor):
	""" Render IR back into something a programmer will recognize in a report. """

	def visit_Literal(self, lit:Literal):
		value = lit.value
		if value is None: return "nothing"
		if value is True: return "true"
		if value is False: return "false"
		if isinstance(value, str): return '"%s"'%value
		return repr(value)

	def visit_TypeLiteral(self, tl:TypeLiteral): return self.visit(tl.type_expr)
	@staticmethod
	def visit_Instance(_:Instance): return ""
	@staticmethod
	def visit_Lookup(lu:Lookup): return lu.name

	def visit_Call(self, call:Call):
		return "%s(%s)"%(call.name, ", ".join(map(self.visit, call.args)))

	def _operand(self, expr:ValueExpression):
		text = self.visit(expr)
		return "(%s)"%text if isinstance(expr, (BinExp, Cond)) else text

	def visit_BinExp(self, bx:BinExp):
		return "%s %s %s"%(self._operand(bx.lhs), bx.op, self._operand(bx.rhs))
	def visit_UnaryExp(self, ux:UnaryExp):
		return ux.op + self._operand(ux.arg)
	def visit_FieldReference(self, fr:FieldReference):
		return "%s.%s"%(self._operand(fr.lhs), fr.field_name)
	def visit_IsA(self, isa:IsA):
		return "%s isa %s"%(self._operand(isa.subject), self.visit(isa.type_expr))
	def visit_Cond(self, cond:Cond):
		parts = cond.if_part, cond.then_part, cond.else_part
		return "%s ? %s : %s"%tuple(map(self._operand, parts))

	def visit_TypeCall(self, tc:TypeCall):
		if tc.arguments: return "%s{%s}"%(tc.name, ", ".join(map(self.visit, tc.arguments)))
		return tc.name
	def visit_UnionSpec(self, us:UnionSpec):
		return "Union{%s}"%", ".join(map(self.visit, us.members))
	@staticmethod
	def visit_AnySpec(_:AnySpec): return "Any"

_unparse = Unparse()

def unparse(phrase:Phrase) -> str:
	return _unparse.visit(phrase)
