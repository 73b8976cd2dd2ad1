"""
All the definition resolution stuff goes here.
By the time this pass is finished, every type name points to its declaration,
the hierarchy is known to be a proper tree, every type expression has a
SleuthType, and the method table is built and frozen.
"""
from pathlib import Path
from typing import Union
from boozetools.support.foundation import Visitor, strongly_connected_components_hashable
from . import syntax, front_end, preamble
from .ontology import Phrase
from .diagnostics import Report
from .calculus import SleuthType, ConcreteType, AbstractType, TypeVariable, MetaType, ANY
from .lattice import union_of
from .method_table import MethodTable, MethodSignature

class Yuck(Exception):
	"""
	The first argument will be the name of the pass fraught with error.
	The end-user might not care about this, but it's handy for testing.
	"""
	pass

class RoadMap:
	module: syntax.Module
	types: dict[str, syntax.TypeDeclaration]
	leaves: dict[syntax.TypeDeclaration, tuple[ConcreteType, ...]]
	structure: dict[syntax.TypeDeclaration, tuple[tuple[TypeVariable, ...], dict[str, SleuthType]]]
	manifest: dict[Phrase, SleuthType]
	table: MethodTable

	def __init__(self, source:Union[Path, str, syntax.Module], report:Report):
		if isinstance(source, syntax.Module): module = source
		else:
			try: module = front_end.load_file(Path(source), report)
			except front_end.ParseError: raise Yuck("parse")
		report.info("Resolve", module.path)
		self.module = module
		self._report = report
		self.types = {}
		self.leaves = {}
		self.structure = {}
		self.manifest = {}
		self.table = MethodTable()

		self._define()
		if report.sick(): raise Yuck("define")
		self._link_hierarchy()
		if report.sick(): raise Yuck("hierarchy")
		self._resolve()
		if report.sick(): raise Yuck("resolve")
		self.table.freeze()

	def translate(self, type_expr:syntax.TypeExpression, scope=None) -> SleuthType:
		if type_expr is None: return ANY
		return Translator(self, scope or {}).visit(type_expr)

	def type_value(self, name:str) -> SleuthType:
		""" What a type's name means when used as a value: the type itself, bare of arguments. """
		decl = self.types[name]
		return MetaType(AbstractType(decl) if decl.is_abstract else ConcreteType(decl))

	# Phase one: Each type is defined exactly once, and makes sense in isolation.

	def _define(self):
		report = self._report
		for decl in preamble.built_in_types:
			self.types[decl.name] = decl
		for decl in self.module.types:
			if decl.name in self.types: report.redefined("type", self.types[decl.name].where, decl.where)
			else: self.types[decl.name] = decl
			if decl.is_abstract and (decl.fields or decl.is_primitive or decl.type_params):
				report.malformed(decl.where, "An abstract type has no fields, parameters, or primitive representation.")
			_check_unique(report, "type parameter", decl.type_params)
			_check_unique(report, "field", decl.fields)
		for method in self.module.methods:
			_check_unique(report, "parameter", method.params)
			_check_unique(report, "type parameter", method.type_params)

	# Phase two: The supertypes form a tree with abstract types at the interior.

	def _link_hierarchy(self):
		report = self._report
		graph = {}
		for decl in self.module.types:
			decl.supertype = None
			if decl.super_name is not None and decl.super_name != "Any":
				parent = self.types.get(decl.super_name)
				if parent is None: report.undefined_type(decl.where, decl.super_name)
				elif not parent.is_abstract: report.bad_supertype(decl.where, decl.name, decl.super_name)
				else: decl.supertype = parent
			graph[decl] = [decl.supertype] if decl.supertype in self.module.types else []
		for scc in strongly_connected_components_hashable(graph):
			if len(scc) > 1 or scc[0] in graph[scc[0]]:
				report.circular_hierarchy(scc)

	# Phase three: Translate type expressions and build the method table.

	def _resolve(self):
		every_type = list(self.types.values())
		for decl in every_type:
			for p in decl.type_params:
				p.bound = self.translate(p.bound_expr)
		for decl in every_type:
			if decl.is_abstract:
				self.leaves[decl] = tuple(
					ConcreteType(d).exemplar() for d in every_type
					if not d.is_abstract and any(a is decl for a in d.ancestors())
				)

		for sig in preamble.intrinsic_methods():
			self.table.register(sig)
		for decl in self.module.types:
			if decl.is_abstract or decl.is_primitive: continue
			type_vars = tuple(TypeVariable(p, p.bound) for p in decl.type_params)
			scope = {v.symbol.name: v for v in type_vars}
			fields = {f.name: self.translate(f.type_expr, scope) for f in decl.fields}
			self.structure[decl] = type_vars, fields
			constructor = preamble.Constructor(decl, type_vars)
			self.table.register(MethodSignature(decl.name, tuple(fields.values()), constructor, decl.where, type_vars))

		finder = _ManifestFinder(self, {})
		for method in self.module.methods:
			scope = {}
			for p in method.type_params:
				p.bound = self.translate(p.bound_expr, scope)
				scope[p.name] = TypeVariable(p, p.bound)
			params = tuple(self.translate(p.type_expr, scope) for p in method.params)
			sig = MethodSignature(method.name, params, method, method.where, tuple(scope.values()))
			prior = self.table.register(sig)
			if prior is not None:
				self._report.info("Redefined", sig.render(), "at", method.where, "replacing", prior.where)
			_ManifestFinder(self, scope).tour(method.body)
		finder.tour(self.module.globals)
		finder.tour(self.module.entries)

def _check_unique(report:Report, what:str, symbols):
	seen = {}
	for s in symbols:
		if s.name in seen: report.redefined(what, seen[s.name].where, s.where)
		else: seen[s.name] = s

class Translator(Visitor):
	""" Map type syntax into SleuthType, with type-parameters in scope mapping to their variables. """
	def __init__(self, roadmap:RoadMap, scope:dict[str, TypeVariable]):
		self._roadmap = roadmap
		self._scope = scope

	def visit_TypeCall(self, tc:syntax.TypeCall) -> SleuthType:
		report = self._roadmap._report
		if tc.name in self._scope:
			if tc.arguments: report.wrong_type_arity(tc.where, tc.name, len(tc.arguments), 0)
			return self._scope[tc.name]
		decl = self._roadmap.types.get(tc.name)
		if decl is None:
			report.undefined_type(tc.where, tc.name)
			return ANY
		tc.dfn = decl
		args = [self.visit(a) for a in tc.arguments]
		if args and len(args) != decl.type_arity():
			report.wrong_type_arity(tc.where, tc.name, len(args), decl.type_arity())
			return ANY
		if decl.is_abstract: return AbstractType(decl).exemplar()
		return ConcreteType(decl, args).exemplar()

	def visit_UnionSpec(self, us:syntax.UnionSpec) -> SleuthType:
		return union_of(self.visit(m) for m in us.members)

	@staticmethod
	def visit_AnySpec(_:syntax.AnySpec) -> SleuthType:
		return ANY

class _ManifestFinder(Visitor):
	"""
	Perfectly ordinary top-down walk, to translate the type expressions
	that appear inside code: type-tests, types used as values, and instances.
	"""
	def __init__(self, roadmap:RoadMap, scope:dict[str, TypeVariable]):
		self._roadmap = roadmap
		self._scope = scope

	def tour(self, items):
		for i in items: self.visit(i)

	def _note(self, phrase, type_expr:syntax.TypeExpression):
		self._roadmap.manifest[phrase] = self._roadmap.translate(type_expr, self._scope)

	def visit_Assign(self, s:syntax.Assign): self.visit(s.expr)
	def visit_Return(self, s:syntax.Return): self.visit(s.expr)
	def visit_ExprStmt(self, s:syntax.ExprStmt): self.visit(s.expr)
	def visit_IfStmt(self, s:syntax.IfStmt):
		self.visit(s.if_part)
		self.tour(s.then_body)
		self.tour(s.else_body)
	def visit_While(self, s:syntax.While):
		self.visit(s.if_part)
		self.tour(s.body)

	def visit_Literal(self, _:syntax.Literal): pass
	def visit_Lookup(self, _:syntax.Lookup): pass
	def visit_TypeLiteral(self, tl:syntax.TypeLiteral): self._note(tl, tl.type_expr)
	def visit_Instance(self, inst:syntax.Instance): self._note(inst, inst.type_expr)
	def visit_IsA(self, isa:syntax.IsA):
		self.visit(isa.subject)
		self._note(isa, isa.type_expr)
	def visit_Call(self, call:syntax.Call): self.tour(call.args)
	def visit_BinExp(self, bx:syntax.BinExp):
		self.visit(bx.lhs)
		self.visit(bx.rhs)
	def visit_UnaryExp(self, ux:syntax.UnaryExp): self.visit(ux.arg)
	def visit_FieldReference(self, fr:syntax.FieldReference): self.visit(fr.lhs)
	def visit_Cond(self, cond:syntax.Cond):
		self.tour((cond.if_part, cond.then_part, cond.else_part))
