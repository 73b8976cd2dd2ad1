"""
Read already-expanded IR from a JSON document and build syntax objects.

The document is an object with four lists: types, methods, globals, and entries.
Every node may carry a "line"; a node without one inherits its parent's.
Locations name the "source" file if the document gives one, or else the document itself.
"""
import json
from pathlib import Path
from .location import Location
from .diagnostics import Report
from . import syntax

class ParseError(Exception):
	""" Already reported; the argument is the path. """

def load_file(path:Path, report:Report) -> syntax.Module:
	path = Path(path)
	try:
		with open(path, "r", encoding="utf-8") as fh: text = fh.read()
	except OSError:
		report.no_such_file(path)
		raise ParseError(path)
	return load_text(text, report, path)

def load_text(text:str, report:Report, path:Path=Path("<string>")) -> syntax.Module:
	try: document = json.loads(text)
	except json.JSONDecodeError as e:
		report.broken_file(path, text, e.lineno, e.colno - 1, e.msg)
		raise ParseError(path)
	if not isinstance(document, dict):
		report.malformed(Location(str(path), 1), "The document must be a JSON object.")
		raise ParseError(path)
	source = document.get("source", str(path))
	return _Decoder(source, report).module(document)

class _Decoder:
	def __init__(self, source:str, report:Report):
		self._source = source
		self._report = report

	def _fail(self, where:Location, hint:str):
		self._report.malformed(where, hint)
		raise ParseError(self._source)

	def _where(self, node, outer:Location) -> Location:
		if isinstance(node, dict) and "line" in node:
			line = node["line"]
			if not isinstance(line, int): self._fail(outer, "A line number must be an integer.")
			return Location(self._source, line)
		return outer

	def _field(self, node:dict, key:str, where:Location, kind=None):
		if key not in node: self._fail(where, "Expected a %r key here."%key)
		value = node[key]
		if kind is not None and not isinstance(value, kind): self._fail(where, "The %r must be a %s."%(key, kind.__name__))
		return value

	def _list(self, node:dict, key:str, where:Location) -> list:
		value = node.get(key, [])
		if not isinstance(value, list): self._fail(where, "The %r must be a list."%key)
		return value

	def module(self, document:dict) -> syntax.Module:
		top = Location(self._source, 1)
		types = [self.type_declaration(t, top) for t in self._list(document, "types", top)]
		methods = [self.method(m, top) for m in self._list(document, "methods", top)]
		global_defs = [self.statement(g, top) for g in self._list(document, "globals", top)]
		for g in global_defs:
			if not isinstance(g, syntax.Assign): self._fail(g.where, "Globals must be assignments.")
		entries = [self.expression(e, top) for e in self._list(document, "entries", top)]
		for e in entries:
			if not isinstance(e, syntax.Call): self._fail(e.where, "Entries must be calls.")
		return syntax.Module(self._source, types, methods, global_defs, entries)

	# Declarations

	def type_parameter(self, node, outer:Location) -> syntax.TypeParameter:
		where = self._where(node, outer)
		if isinstance(node, str): return syntax.TypeParameter(node, where)
		if not isinstance(node, dict): self._fail(where, "A type parameter is a name or an object.")
		variance = node.get("variance", "invariant")
		if variance not in syntax.VARIANCES: self._fail(where, "Variance must be one of %s."%(syntax.VARIANCES,))
		bound = node.get("bound")
		bound_expr = None if bound is None else self.type_expression(bound, where)
		return syntax.TypeParameter(self._field(node, "name", where, str), where, variance, bound_expr)

	def type_declaration(self, node, outer:Location) -> syntax.TypeDeclaration:
		where = self._where(node, outer)
		if not isinstance(node, dict): self._fail(where, "A type declaration is an object.")
		fields = []
		for f in self._list(node, "fields", where):
			fw = self._where(f, where)
			if isinstance(f, str): fields.append(syntax.FieldDefinition(f, fw, None))
			elif isinstance(f, dict):
				type_expr = self.type_expression(f["type"], fw) if "type" in f else None
				fields.append(syntax.FieldDefinition(self._field(f, "name", fw, str), fw, type_expr))
			else: self._fail(fw, "A field is a name or an object.")
		return syntax.TypeDeclaration(
			self._field(node, "name", where, str), where,
			super_name=node.get("super"),
			is_abstract=bool(node.get("abstract", False)),
			is_primitive=bool(node.get("primitive", False)),
			type_params=[self.type_parameter(p, where) for p in self._list(node, "params", where)],
			fields=fields,
		)

	def method(self, node, outer:Location) -> syntax.MethodDefinition:
		where = self._where(node, outer)
		if not isinstance(node, dict): self._fail(where, "A method is an object.")
		params = []
		for p in self._list(node, "params", where):
			pw = self._where(p, where)
			if isinstance(p, str): params.append(syntax.FormalParameter(p, pw, None))
			elif isinstance(p, dict):
				type_expr = self.type_expression(p["type"], pw) if "type" in p else None
				params.append(syntax.FormalParameter(self._field(p, "name", pw, str), pw, type_expr))
			else: self._fail(pw, "A parameter is a name or an object.")
		type_params = [self.type_parameter(t, where) for t in self._list(node, "where", where)]
		body = self._field(node, "body", where)
		if isinstance(body, list): statements = self.block(body, where)
		else:
			expr = self.expression(body, where)
			statements = [syntax.Return(expr.where, expr)]
		return syntax.MethodDefinition(self._field(node, "name", where, str), where, params, type_params, statements)

	# Type expressions

	def type_expression(self, node, outer:Location) -> syntax.TypeExpression:
		where = self._where(node, outer)
		if node == "Any": return syntax.AnySpec(where)
		if isinstance(node, str): return syntax.TypeCall(node, where)
		if isinstance(node, dict):
			if "union" in node:
				members = self._field(node, "union", where, list)
				return syntax.UnionSpec(where, [self.type_expression(m, where) for m in members])
			name = self._field(node, "name", where, str)
			if name == "Any" and not node.get("args"): return syntax.AnySpec(where)
			args = [self.type_expression(a, where) for a in self._list(node, "args", where)]
			return syntax.TypeCall(name, where, args)
		self._fail(where, "A type expression is a name or an object.")

	# Statements

	def block(self, nodes, outer:Location) -> list:
		if not isinstance(nodes, list): self._fail(outer, "Expected a list of statements.")
		return [self.statement(s, outer) for s in nodes]

	def statement(self, node, outer:Location) -> syntax.Statement:
		where = self._where(node, outer)
		if not isinstance(node, dict): self._fail(where, "A statement is an object.")
		if "assign" in node:
			return syntax.Assign(where, self._field(node, "assign", where, str), self.expression(self._field(node, "value", where), where))
		if "return" in node:
			return syntax.Return(where, self.expression(node["return"], where))
		if "expr" in node:
			return syntax.ExprStmt(where, self.expression(node["expr"], where))
		if "while" in node:
			return syntax.While(where, self.expression(node["while"], where), self.block(self._field(node, "do", where), where))
		if "if" in node:
			if_part = self.expression(node["if"], where)
			then_body = self.block(self._field(node, "then", where), where)
			else_body = self.block(node.get("else", []), where)
			return syntax.IfStmt(where, if_part, then_body, else_body)
		self._fail(where, "Unrecognized statement.")

	# Expressions

	def expression(self, node, outer:Location) -> syntax.ValueExpression:
		where = self._where(node, outer)
		if not isinstance(node, dict): self._fail(where, "An expression is an object.")
		if "lit" in node:
			value = node["lit"]
			if isinstance(value, (list, dict)): self._fail(where, "Literals are scalars.")
			return syntax.Literal(where, value)
		if "ref" in node:
			return syntax.Lookup(where, self._field(node, "ref", where, str))
		if "call" in node:
			return syntax.Call(where, self._field(node, "call", where, str), self._arguments(node, where))
		if "op" in node:
			op = self._field(node, "op", where, str)
			args = self._arguments(node, where)
			if len(args) == 1: return syntax.UnaryExp(where, op, args[0])
			if len(args) == 2: return syntax.BinExp(where, op, args[0], args[1])
			self._fail(where, "An operator takes one or two operands.")
		if "field" in node:
			lhs = self.expression(self._field(node, "of", where), where)
			return syntax.FieldReference(where, lhs, self._field(node, "field", where, str))
		if "isa" in node:
			subject = self.expression(node["isa"], where)
			return syntax.IsA(where, subject, self.type_expression(self._field(node, "type", where), where))
		if "if" in node:
			parts = [self.expression(self._field(node, key, where), where) for key in ("if", "then", "else")]
			return syntax.Cond(where, *parts)
		if "type" in node:
			return syntax.TypeLiteral(where, self.type_expression(node["type"], where))
		if "instance" in node:
			return syntax.Instance(where, self.type_expression(node["instance"], where))
		self._fail(where, "Unrecognized expression.")

	def _arguments(self, node:dict, where:Location) -> list:
		return [self.expression(a, where) for a in self._list(node, "args", where)]
