"""
The abstract interpreter: walk method bodies with types where values would be,
resolve every call by multiple dispatch, and build a tree of call frames
annotated with whatever provably goes wrong.

Recursion gets the same treatment the type-checker of a pure functional
language might give it: memoize on (function, argument types), notice when
the call graph loops back on an entry still in progress, and let the frame
at the head of the loop iterate until its result stops changing.
Widening bounds the iteration, and a few hard limits bound everything else.
"""
from typing import Callable, Optional, Sequence
from boozetools.support.foundation import Visitor
from . import syntax, preamble
from .location import Location, BUILT_IN
from .calculus import (
	SleuthType, ConcreteType, AbstractType, UnionType, TypeVariable, MetaType,
	BOTTOM, ANY, is_equivalent,
)
from .lattice import (
	is_subtype, join, join_all, meet, difference, widen, split_cases, Rewriter,
)
from .limits import Limits, DEFAULT_LIMITS
from .method_table import MethodSignature, Binder, MATCH, NO_MATCH
from .cache import InferenceCache, InferenceResult, ResourceLimitExceeded
from .stacking import CallFrame, Activation
from .diagnostics import Report
from .resolution import RoadMap

class RunCancelled(Exception):
	""" Somebody asked to stop, probably because the input changed. """

# How many calls between polls of the should-stop callback
_POLL_INTERVAL = 64

def _label(name:str, exprs:Sequence[syntax.ValueExpression], types:Sequence[SleuthType]) -> str:
	return "%s(%s)"%(name, ", ".join("%s::%r"%(syntax.unparse(e), t) for e, t in zip(exprs, types)))

def _cases(t:SleuthType) -> tuple:
	return t.members if isinstance(t, UnionType) else (t,)

class AbstractInterpreter(Visitor):
	_tos: Optional[Activation]
	_globals: dict[str, SleuthType]
	_site_history: dict[tuple, list[tuple]]
	_active: dict[str, int]

	def __init__(self, roadmap:RoadMap, report:Report, limits:Limits=DEFAULT_LIMITS, should_stop:Callable[[], bool]=None):
		self._roadmap = roadmap
		self._table = roadmap.table
		self._report = report
		self._limits = limits
		self._should_stop = should_stop or (lambda: False)
		self._cache = InferenceCache(limits.max_cache_entries)
		self._globals = {}
		self._site_history = {}
		self._active = {}
		self._tos = None
		self._ticks = 0

	def _poll(self):
		self._ticks += 1
		if self._ticks % _POLL_INTERVAL == 0 and self._should_stop():
			raise RunCancelled()

	def _join(self, a, b): return join(a, b, self._limits.union_limit)

	# Entry points

	def evaluate_globals(self) -> CallFrame:
		""" Work out the types of the global variables, in order. Anything that goes wrong lands on a toplevel frame. """
		module = self._roadmap.module
		frame = CallFrame(module.where, "<toplevel>", "<toplevel>")
		self._globals.clear()

		def assignments():
			for g in module.globals:
				self._globals[g.name] = self.check(g.expr)
			return ()
		self._enter(frame, assignments)
		return frame

	def profile(self, entry:syntax.Call) -> CallFrame:
		""" Profile one entry call expression. The entry's frame is the root of the tree that comes back. """
		frame = CallFrame(entry.where, entry.name, entry.name)

		def arguments():
			arg_types = [self.check(a) for a in entry.args]
			frame.label = _label(entry.name, entry.args, arg_types)
			return arg_types
		self._enter(frame, arguments, entry)
		return frame

	def interpret(self, name:str, arg_types:Sequence[SleuthType], where:Location=BUILT_IN) -> CallFrame:
		""" Profile a call given just the argument types. """
		label = "%s(%s)"%(name, ", ".join("::%r"%t for t in arg_types))
		frame = CallFrame(where, name, label)
		self._enter(frame, lambda: list(arg_types), frame)
		return frame

	def _enter(self, frame:CallFrame, arguments:Callable[[], Sequence[SleuthType]], site=None):
		if self._should_stop(): raise RunCancelled()
		self._cache.clear()
		self._site_history.clear()
		self._active.clear()
		self._tos = Activation(None, frame)
		try:
			arg_types = arguments()
			frame.arg_types = tuple(arg_types)
			if site is not None and BOTTOM not in frame.arg_types:
				frame.return_type = self._invoke(frame, site, frame.name, frame.arg_types)
		finally:
			self._tos = None

	# The activation stack

	def push(self, call_frame:CallFrame, memo_key:tuple, gamma:dict):
		if self._tos.depth >= self._limits.max_depth:
			raise ResourceLimitExceeded("nested calls", self._limits.max_depth)
		self._tos = Activation(self._tos, call_frame, memo_key)
		self._tos.gamma = gamma
		name = memo_key[0]
		self._active[name] = self._active.get(name, 0) + 1

	def pop(self, memo_key:tuple):
		assert self._tos.memo_key == memo_key
		self._tos = self._tos.dynamic_link
		name = memo_key[0]
		self._active[name] -= 1
		if not self._active[name]:
			del self._active[name]
			for key in [k for k in self._site_history if k[0] == name]:
				del self._site_history[key]

	def _note_cycle_in_call_graph(self, memo_key):
		"""
		Every frame in the cycle (save for the outermost) gets
		marked is_recursion_body so it won't trust its result.
		The outermost frame gets tagged as a recursive head,
		which will iterate until its result settles down.
		"""
		frame = self._tos
		while frame.memo_key != memo_key:
			frame.is_recursion_body = True
			frame = frame.dynamic_link
		frame.is_recursion_head = True

	# Calls

	def call_site(self, site:syntax.ValueExpression, name:str, args:Sequence[syntax.ValueExpression]) -> SleuthType:
		arg_types = [self.check(a) for a in args]
		if BOTTOM in arg_types:
			# Unreachable: some argument can't be computed, so this call never happens.
			return BOTTOM
		label = _label(name, args, arg_types)
		frame = self._tos.call_frame.adopt(CallFrame(site.where, name, label, arg_types))
		self._report.trace(self._tos.depth, "@", site.where, label)
		frame.return_type = self._invoke(frame, site, name, arg_types)
		return frame.return_type

	def _invoke(self, frame:CallFrame, site, name:str, arg_types:Sequence[SleuthType]) -> SleuthType:
		self._poll()
		if not self._table.knows(name):
			if name in self._roadmap.types:
				Report.invalid_builtin_call(frame, "%s has no constructor; it is a built-in or abstract type"%name)
			else:
				Report.undefined_binding(frame, frame.site, name)
			return BOTTOM
		arg_types = self._widen_call_site(name, site, arg_types)
		cases = split_cases(arg_types, self._roadmap.leaves, self._limits.max_split)

		results = []
		groups : dict[MethodSignature, list[tuple]] = {}
		for case in cases:
			dispatch = self._table.lookup(name, case)
			if dispatch.outcome == MATCH:
				sig = dispatch.method
				if isinstance(sig.body, preamble.Intrinsic):
					results.append(sig.body.apply(self, frame, case, dispatch.gamma))
				else:
					groups.setdefault(sig, []).append(case)
			elif dispatch.outcome == NO_MATCH:
				Report.no_matching_method(frame, name, case)
			elif ANY in case:
				# Ambiguity due to knowing nothing is not worth mentioning.
				results.append(ANY)
			else:
				Report.ambiguous_method(frame, name, case, dispatch.candidates)
				results.append(ANY)

		for sig, group in groups.items():
			if len(group) == len(cases): actuals = tuple(arg_types)
			else: actuals = tuple(join_all(column, self._limits.union_limit) for column in zip(*group))
			binder = Binder()
			binder.tour(sig.param_types, actuals)
			results.append(self.apply_method(frame, sig, actuals, binder.gamma))

		return join_all(results, self._limits.union_limit)

	def _widen_call_site(self, name:str, site, arg_types:Sequence[SleuthType]) -> tuple:
		"""
		While a function is on the stack, track the argument types each call site passes it.
		If they keep changing, as in `f(x) = f(Wrap(x))`, widen them.
		"""
		if name not in self._active: return tuple(arg_types)
		history = self._site_history.setdefault((name, id(site)), [])
		history.append(tuple(arg_types))
		threshold = self._limits.widen_threshold
		if len({tuple(t.number for t in h) for h in history}) <= threshold:
			return tuple(arg_types)
		widened = tuple(widen(column, threshold) for column in zip(*history))
		self._report.trace(self._tos.depth, "widened", name, "to", widened)
		return widened

	def apply_method(self, frame:CallFrame, sig:MethodSignature, arg_types:tuple, gamma:dict) -> SleuthType:
		memo_key = self._cache.key(sig.name, arg_types)
		memo = self._cache.fetch(memo_key)
		if memo.is_solved or memo.is_on_stack:
			if memo.is_on_stack: self._note_cycle_in_call_graph(memo_key)
			return self._reuse(frame, memo.result())
		# Otherwise, we do this the hard way.

		self.push(frame, memo_key, {v: gamma.get(v, v.bound) for v in sig.type_vars})
		memo.is_on_stack = True
		start = self._mark(frame)
		try:
			while not memo.is_solved:
				self._rollback(frame, start)
				prior_guess = memo.guess
				result = self._eval_method(sig.body, arg_types)
				if self._tos.is_recursion_body:
					memo.guess = self._join(prior_guess, result)
					break
				if self._tos.is_recursion_head:
					# This is the root of a cycle. We are done when a run
					# yields nothing new beyond the previous best-guess.
					memo.history.append(result)
					guess = self._join(prior_guess, result)
					if len({t.number for t in memo.history}) > self._limits.widen_threshold:
						guess = self._join(guess, widen(memo.history, self._limits.widen_threshold))
					if is_equivalent(prior_guess, guess): self._cache.seal(memo_key, guess, frame.errors)
					else: memo.guess = guess
				else:
					self._cache.seal(memo_key, result, frame.errors)
		finally:
			memo.is_on_stack = False
			self.pop(memo_key)
		return memo.guess

	def _reuse(self, frame:CallFrame, result:InferenceResult) -> SleuthType:
		""" A stub frame stands in for a result computed elsewhere; its errors appear there. """
		frame.cached = True
		if result.converged:
			self._report.trace(self._tos.depth, "reusing", frame.label, "->", result.return_type, "with %d error(s)"%len(result.errors))
		else:
			self._report.trace(self._tos.depth, "recursion", frame.label, "guessing", result.return_type)
		return result.return_type

	def _mark(self, frame:CallFrame) -> tuple:
		return frame.mark(), self._cache.mark()

	def _rollback(self, frame:CallFrame, mark:tuple):
		# Discarded frames and the cache entries they sealed must go together,
		# or the next iteration would find stubs where the errors used to be.
		frame.rollback(mark[0])
		self._cache.rollback(mark[1])

	def _eval_method(self, method:syntax.MethodDefinition, arg_types:tuple) -> SleuthType:
		tos = self._tos
		tos.reset()
		tos.update(zip((p.name for p in method.params), arg_types))
		if self._exec_block(method.body):
			tos.returns = self._join(tos.returns, preamble.nothing_type)
		return tos.returns

	# Statements: each answers whether control can reach whatever comes next.

	def _exec_block(self, statements:Sequence[syntax.Statement]) -> bool:
		for s in statements:
			if not self.visit(s): return False
		return True

	def visit_Assign(self, s:syntax.Assign) -> bool:
		self._tos.assign(s.name, self.check(s.expr))
		return True

	def visit_Return(self, s:syntax.Return) -> bool:
		tos = self._tos
		tos.returns = self._join(tos.returns, self.check(s.expr))
		return False

	def visit_ExprStmt(self, s:syntax.ExprStmt) -> bool:
		self.check(s.expr)
		return True

	def visit_IfStmt(self, s:syntax.IfStmt) -> bool:
		tos = self._tos
		before = tos.locals
		outcomes = []
		for narrowing, body in zip(self._branches(s.if_part), (s.then_body, s.else_body)):
			if narrowing is None: continue
			tos.locals = dict(before, **narrowing)
			if self._exec_block(body): outcomes.append(tos.locals)
		if not outcomes:
			tos.locals = before
			return False
		tos.locals = self._merge(outcomes)
		return True

	def visit_While(self, s:syntax.While) -> bool:
		tos = self._tos
		frame = tos.call_frame
		start = self._mark(frame)
		history = {}
		while True:
			self._rollback(frame, start)
			before = tos.locals
			enter, leave = self._branches(s.if_part)
			if enter is None: break
			tos.locals = dict(before, **enter)
			reached = self._exec_block(s.body)
			after = self._merge([before, tos.locals] if reached else [before])
			for name, t in after.items():
				seen = history.setdefault(name, [])
				seen.append(t)
				if len({h.number for h in seen}) > self._limits.widen_threshold:
					after[name] = self._join(t, widen(seen, self._limits.widen_threshold))
			tos.locals = after
			if after.keys() == before.keys() and all(is_equivalent(after[k], before[k]) for k in after):
				break
		if leave is None:
			return False
		tos.locals = dict(tos.locals, **leave)
		return True

	def _merge(self, environments:Sequence[dict]) -> dict:
		merged = {}
		for env in environments:
			for name, t in env.items():
				merged[name] = self._join(merged[name], t) if name in merged else t
		return merged

	def _branches(self, condition:syntax.ValueExpression) -> tuple[Optional[dict], Optional[dict]]:
		"""
		Evaluate a condition and work out what each arm may assume.
		None means the arm is dead. Otherwise, it's a dict of narrowed variables.
		"""
		if isinstance(condition, syntax.Literal) and isinstance(condition.value, bool):
			return ({}, None) if condition.value else (None, {})
		self._expect_boolean(condition, self.check(condition))
		if isinstance(condition, syntax.IsA) and isinstance(condition.subject, syntax.Lookup):
			name = condition.subject.name
			if self._tos.holds(name):
				subject = self._tos.fetch(name)
				target = self._manifest(condition)
				yes = meet(subject, target)
				no = difference(subject, target, self._roadmap.leaves)
				return (None if yes is BOTTOM else {name: yes}), (None if no is BOTTOM else {name: no})
		return {}, {}

	def _expect_boolean(self, condition:syntax.ValueExpression, t:SleuthType):
		# Bottom and Any conditions are fine: analyze both arms and move on.
		for case in _cases(t):
			if case is ANY or case is BOTTOM or is_subtype(case, preamble.bool_type): continue
			Report.non_boolean_condition(self._tos.call_frame, condition.where, case)

	# Expressions

	def check(self, expr:syntax.ValueExpression) -> SleuthType:
		t = self.visit(expr)
		assert isinstance(t, SleuthType), (type(expr), t)
		return t

	@staticmethod
	def visit_Literal(lit:syntax.Literal) -> SleuthType:
		return preamble.literal_type(lit.value)

	def _manifest(self, phrase) -> SleuthType:
		return self._roadmap.manifest[phrase].visit(Rewriter(self._tos.gamma))

	def visit_TypeLiteral(self, tl:syntax.TypeLiteral) -> SleuthType:
		return MetaType(self._manifest(tl)).exemplar()

	def visit_Instance(self, inst:syntax.Instance) -> SleuthType:
		return self._manifest(inst)

	def visit_Lookup(self, lu:syntax.Lookup) -> SleuthType:
		name = lu.name
		tos = self._tos
		if tos.holds(name): return tos.fetch(name)
		for var, t in tos.gamma.items():
			if var.symbol.name == name: return MetaType(t).exemplar()
		if name in self._globals: return self._globals[name]
		if name in self._roadmap.types: return self._roadmap.type_value(name).exemplar()
		if self._table.knows(name): return ANY
		Report.undefined_binding(tos.call_frame, lu.where, name)
		return BOTTOM

	def visit_Call(self, call:syntax.Call) -> SleuthType:
		return self.call_site(call, call.name, call.args)

	def visit_BinExp(self, bx:syntax.BinExp) -> SleuthType:
		return self.call_site(bx, bx.op, (bx.lhs, bx.rhs))

	def visit_UnaryExp(self, ux:syntax.UnaryExp) -> SleuthType:
		return self.call_site(ux, ux.op, (ux.arg,))

	def visit_IsA(self, isa:syntax.IsA) -> SleuthType:
		if self.check(isa.subject) is BOTTOM: return BOTTOM
		return preamble.bool_type

	def visit_Cond(self, cond:syntax.Cond) -> SleuthType:
		tos = self._tos
		before = tos.locals
		results = []
		for narrowing, expr in zip(self._branches(cond.if_part), (cond.then_part, cond.else_part)):
			if narrowing is None: continue
			tos.locals = dict(before, **narrowing)
			results.append(self.check(expr))
		tos.locals = before
		return join_all(results, self._limits.union_limit)

	def visit_FieldReference(self, fr:syntax.FieldReference) -> SleuthType:
		lhs = self.check(fr.lhs)
		if lhs is BOTTOM: return BOTTOM
		label = "getproperty(%s::%r, :%s)"%(syntax.unparse(fr.lhs), lhs, fr.field_name)
		frame = self._tos.call_frame.adopt(CallFrame(fr.where, "getproperty", label, (lhs,)))
		self._report.trace(self._tos.depth, "@", fr.where, label)
		frame.return_type = self._get_field(frame, lhs, fr.field_name)
		return frame.return_type

	def _get_field(self, frame:CallFrame, lhs:SleuthType, field_name:str) -> SleuthType:
		results = []
		for case in _cases(lhs):
			if isinstance(case, TypeVariable): case = case.bound
			if case is ANY:
				results.append(ANY)
			elif isinstance(case, ConcreteType) and case.symbol in self._roadmap.structure:
				field_type = self._field_type(case, field_name)
				if field_type is None: Report.invalid_field_access(frame, case, field_name)
				else: results.append(field_type)
			elif isinstance(case, AbstractType):
				found = [
					self._field_type(leaf, field_name) for leaf in self._roadmap.leaves.get(case.symbol, ())
					if leaf.symbol in self._roadmap.structure
				]
				found = [t for t in found if t is not None]
				if found: results.extend(found)
				else: Report.invalid_field_access(frame, case, field_name)
			elif isinstance(case, MetaType):
				Report.field_of_a_type(frame, case, field_name)
			else:
				Report.invalid_builtin_call(frame, "%r is a built-in type with no fields"%case)
		return join_all(results, self._limits.union_limit)

	def _field_type(self, t:ConcreteType, field_name:str) -> Optional[SleuthType]:
		type_vars, fields = self._roadmap.structure[t.symbol]
		if field_name not in fields: return None
		return fields[field_name].visit(Rewriter(dict(zip(type_vars, t.type_args))))
