import unittest
from sleuth import syntax, preamble
from sleuth.location import BUILT_IN
from sleuth.calculus import ConcreteType, TypeVariable, ANY, is_equivalent
from sleuth.lattice import union_of
from sleuth.method_table import MethodTable, MethodSignature, Binder, MATCH, NO_MATCH, AMBIGUOUS
from sleuth.preamble import Intrinsic

INT, BOOL, FLOAT = preamble.int_type, preamble.bool_type, preamble.float_type
STRING, NOTHING = preamble.string_type, preamble.nothing_type
NUMBER, REAL, INTEGER = preamble.number_type, preamble.real_type, preamble.integer_type

CELL = syntax.TypeDeclaration("Cell", type_params=[syntax.TypeParameter("T")])

def sig(name, *params, result=ANY, type_vars=()):
	return MethodSignature(name, tuple(params), Intrinsic(result), BUILT_IN, tuple(type_vars))

class DispatchTests(unittest.TestCase):

	def setUp(self):
		self.table = MethodTable()
		self.on_integer = sig("f", INTEGER)
		self.on_real = sig("f", REAL)
		self.on_string = sig("f", preamble.abstract_string_type)
		for s in (self.on_integer, self.on_real, self.on_string):
			self.table.register(s)

	def test_most_specific_wins(self):
		d = self.table.lookup("f", [INT])
		self.assertEqual(MATCH, d.outcome)
		self.assertIs(self.on_integer, d.method)
		self.assertEqual(2, len(d.candidates))

	def test_less_specific_fallback(self):
		self.assertIs(self.on_real, self.table.lookup("f", [FLOAT]).method)
		self.assertIs(self.on_string, self.table.lookup("f", [STRING]).method)

	def test_no_match(self):
		for args in [[NOTHING], [INT, INT], []]:
			with self.subTest(args):
				d = self.table.lookup("f", args)
				self.assertEqual(NO_MATCH, d.outcome)
				self.assertEqual((), d.candidates)
		self.assertEqual(NO_MATCH, self.table.lookup("g", [INT]).outcome)

	def test_ambiguous(self):
		self.table.register(sig("g", INTEGER, REAL))
		self.table.register(sig("g", REAL, INTEGER))
		d = self.table.lookup("g", [INT, INT])
		self.assertEqual(AMBIGUOUS, d.outcome)
		self.assertIsNone(d.method)
		self.assertEqual(2, len(d.candidates))
		self.assertEqual(MATCH, self.table.lookup("g", [INT, FLOAT]).outcome)

	def test_broad_arguments_are_ambiguous_until_split(self):
		# The interpreter splits these into cases before it ever asks.
		self.assertEqual(AMBIGUOUS, self.table.lookup("f", [union_of([INT, STRING])]).outcome)
		self.assertEqual(AMBIGUOUS, self.table.lookup("f", [ANY]).outcome)
		self.assertIs(self.on_integer, self.table.lookup("f", [union_of([INT, BOOL])]).method)

	def test_redefinition_replaces(self):
		again = sig("f", INTEGER, result=STRING)
		self.assertIs(self.on_integer, self.table.register(again))
		self.assertIsNone(self.table.register(sig("f", STRING)))
		self.assertEqual(4, len(self.table.methods("f")))
		self.assertIs(again, self.table.lookup("f", [BOOL]).method)

	def test_frozen(self):
		self.table.freeze()
		self.assertTrue(self.table.knows("f"))
		self.assertFalse(self.table.knows("g"))
		with self.assertRaises(AssertionError):
			self.table.register(sig("g", INT))

class TypeVariableTests(unittest.TestCase):

	def setUp(self):
		self.t = TypeVariable(syntax.TypeParameter("T"), NUMBER)
		self.table = MethodTable()
		self.table.register(sig("h", self.t, type_vars=[self.t]))
		self.table.register(sig("k", ConcreteType(CELL, [self.t]), type_vars=[self.t]))
		self.table.register(sig("pair", self.t, self.t, type_vars=[self.t]))

	def test_binding(self):
		d = self.table.lookup("h", [INT])
		self.assertEqual(MATCH, d.outcome)
		self.assertTrue(is_equivalent(INT, d.gamma[self.t]))
		self.assertEqual(NO_MATCH, self.table.lookup("h", [STRING]).outcome)

	def test_binding_through_invariant_parameter(self):
		d = self.table.lookup("k", [ConcreteType(CELL, [FLOAT])])
		self.assertEqual(MATCH, d.outcome)
		self.assertTrue(is_equivalent(FLOAT, d.gamma[self.t]))
		self.assertEqual(NO_MATCH, self.table.lookup("k", [ConcreteType(CELL, [STRING])]).outcome)

	def test_repeated_variable_joins(self):
		d = self.table.lookup("pair", [INT, FLOAT])
		self.assertTrue(is_equivalent(union_of([INT, FLOAT]), d.gamma[self.t]))

	def test_binder_directly(self):
		binder = Binder()
		self.assertTrue(binder.tour([self.t, STRING], [BOOL, STRING]))
		self.assertTrue(is_equivalent(BOOL, binder.gamma[self.t]))
		self.assertFalse(Binder().tour([self.t, STRING], [BOOL, INT]))

	def test_variable_is_more_specific_than_its_bound(self):
		on_number = sig("h", NUMBER)
		self.table.register(on_number)
		self.assertEqual(2, len(self.table.methods("h")))
		d = self.table.lookup("h", [INT])
		self.assertEqual(MATCH, d.outcome)
		self.assertIsNot(on_number, d.method)
		self.assertTrue(is_equivalent(INT, d.gamma[self.t]))

	def test_signature_text(self):
		s = self.table.methods("h")[0]
		self.assertEqual("h(::T) where {T<:Number}", s.render())

if __name__ == '__main__':
	unittest.main()
