import unittest
from itertools import product
from sleuth import syntax, preamble
from sleuth.calculus import ConcreteType, AbstractType, UnionType, TypeVariable, MetaType, BOTTOM, ANY, is_equivalent
from sleuth.lattice import (
	is_subtype, join, join_all, meet, difference, common_ancestor,
	widen, split_cases, union_of, Rewriter,
)

INT, BOOL, FLOAT = preamble.int_type, preamble.bool_type, preamble.float_type
STRING, NOTHING = preamble.string_type, preamble.nothing_type
NUMBER, REAL, INTEGER = preamble.number_type, preamble.real_type, preamble.integer_type

def _struct(name, *params, parent=None):
	decl = syntax.TypeDeclaration(name, type_params=params)
	decl.supertype = parent
	return decl

BOX = _struct("Box", syntax.TypeParameter("T", variance="covariant"))
CELL = _struct("Cell", syntax.TypeParameter("T"))
RATIONAL = ConcreteType(_struct("Rational", parent=preamble.REAL))
FIXED = ConcreteType(_struct("Fixed", parent=preamble.REAL))

def box(t): return ConcreteType(BOX, [t])
def cell(t): return ConcreteType(CELL, [t])

LEAVES = {
	preamble.REAL: (INT, BOOL, FLOAT),
	preamble.NUMBER: (INT, BOOL, FLOAT),
}

class SubtypeTests(unittest.TestCase):

	def test_reflexive(self):
		for t in [INT, NUMBER, ANY, BOTTOM, union_of([INT, STRING]), box(INT), cell(FLOAT), MetaType(REAL)]:
			with self.subTest(t):
				self.assertTrue(is_subtype(t, t))

	def test_declared_hierarchy(self):
		self.assertTrue(is_subtype(INT, INTEGER))
		self.assertTrue(is_subtype(INTEGER, REAL))
		self.assertTrue(is_subtype(INT, NUMBER))
		self.assertTrue(is_subtype(RATIONAL, REAL))
		self.assertFalse(is_subtype(FLOAT, INTEGER))
		self.assertFalse(is_subtype(STRING, NUMBER))
		self.assertFalse(is_subtype(NUMBER, INT))

	def test_top_and_bottom(self):
		for t in [INT, NUMBER, box(STRING)]:
			with self.subTest(t):
				self.assertTrue(is_subtype(BOTTOM, t))
				self.assertTrue(is_subtype(t, ANY))
				self.assertFalse(is_subtype(ANY, t))
				self.assertFalse(is_subtype(t, BOTTOM))

	def test_unions(self):
		self.assertTrue(is_subtype(INT, union_of([INT, STRING])))
		self.assertTrue(is_subtype(union_of([INT, FLOAT]), REAL))
		self.assertFalse(is_subtype(union_of([INT, STRING]), NUMBER))

	def test_covariant_parameter(self):
		self.assertTrue(is_subtype(box(INT), box(NUMBER)))
		self.assertFalse(is_subtype(box(NUMBER), box(INT)))

	def test_invariant_parameter(self):
		self.assertFalse(is_subtype(cell(INT), cell(NUMBER)))
		self.assertTrue(is_subtype(cell(INT), cell(INT)))

	def test_missing_argument_is_a_wildcard(self):
		self.assertTrue(is_subtype(cell(INT), ConcreteType(CELL)))
		self.assertTrue(is_subtype(box(STRING), ConcreteType(BOX)))
		self.assertFalse(is_subtype(ConcreteType(CELL), cell(INT)))

	def test_type_variable_argument(self):
		t = TypeVariable(syntax.TypeParameter("T"), NUMBER)
		self.assertTrue(is_subtype(cell(INT), cell(t)))
		self.assertFalse(is_subtype(cell(STRING), cell(t)))

	def test_type_variable_is_not_its_bound(self):
		t = TypeVariable(syntax.TypeParameter("T"), NUMBER)
		self.assertTrue(is_subtype(t, NUMBER))
		self.assertFalse(is_subtype(NUMBER, t))
		self.assertFalse(is_subtype(INT, t))
		self.assertTrue(is_subtype(t, t))
		self.assertTrue(is_equivalent(NUMBER, union_of([t, NUMBER])))
		self.assertTrue(is_equivalent(NUMBER, union_of([NUMBER, t])))

	def test_metatypes(self):
		self.assertTrue(is_subtype(MetaType(INT), MetaType(NUMBER)))
		self.assertFalse(is_subtype(MetaType(INT), INT))
		self.assertFalse(is_subtype(INT, MetaType(INT)))

class JoinTests(unittest.TestCase):
	SAMPLE = [INT, FLOAT, STRING, BOOL, NUMBER, BOTTOM, ANY, box(INT), box(FLOAT)]

	def test_commutative_and_idempotent(self):
		for a, b in product(self.SAMPLE, repeat=2):
			with self.subTest(a=a, b=b):
				self.assertTrue(is_equivalent(join(a, b), join(b, a)))
				self.assertTrue(is_equivalent(join(a, a), a))

	def test_associative(self):
		for a, b, c in product(self.SAMPLE, repeat=3):
			with self.subTest(a=a, b=b, c=c):
				self.assertTrue(is_equivalent(join(join(a, b), c), join(a, join(b, c))))

	def test_is_an_upper_bound(self):
		for a, b in product(self.SAMPLE, repeat=2):
			with self.subTest(a=a, b=b):
				j = join(a, b)
				self.assertTrue(is_subtype(a, j))
				self.assertTrue(is_subtype(b, j))

	def test_unrelated_types_form_a_union(self):
		j = join(STRING, INT)
		self.assertIsInstance(j, UnionType)
		self.assertEqual("Union{Int, String}", repr(j))

	def test_subsumption(self):
		self.assertIs(NUMBER, join(INT, NUMBER))
		self.assertTrue(is_equivalent(box(NUMBER), join(box(INT), box(NUMBER))))

	def test_union_limit(self):
		four = join_all([INT, BOOL, FLOAT, RATIONAL])
		self.assertIsInstance(four, UnionType)
		self.assertEqual(4, len(four.members))
		self.assertTrue(is_equivalent(REAL, join(four, FIXED)))
		self.assertIs(ANY, join_all([INT, BOOL, FLOAT, RATIONAL, STRING]))

	def test_common_ancestor(self):
		self.assertTrue(is_equivalent(REAL, common_ancestor(INT, FLOAT)))
		self.assertTrue(is_equivalent(INTEGER, common_ancestor(INT, BOOL)))
		self.assertIs(ANY, common_ancestor(INT, STRING))
		self.assertTrue(is_equivalent(ConcreteType(CELL), common_ancestor(cell(INT), cell(FLOAT))))
		self.assertTrue(is_equivalent(box(REAL), common_ancestor(box(INT), box(FLOAT))))

class MeetAndDifferenceTests(unittest.TestCase):

	def test_meet(self):
		self.assertTrue(is_equivalent(INT, meet(union_of([INT, STRING]), NUMBER)))
		self.assertTrue(is_equivalent(INT, meet(NUMBER, INT)))
		self.assertIs(BOTTOM, meet(INT, STRING))
		self.assertIs(BOTTOM, meet(INTEGER, preamble.abstract_string_type))
		self.assertTrue(is_equivalent(INT, meet(ANY, INT)))
		self.assertTrue(is_equivalent(cell(INT), meet(ConcreteType(CELL), cell(INT))))
		self.assertIs(BOTTOM, meet(cell(INT), cell(FLOAT)))

	def test_difference(self):
		self.assertTrue(is_equivalent(STRING, difference(union_of([INT, STRING]), INT)))
		self.assertIs(BOTTOM, difference(INT, NUMBER))
		self.assertTrue(is_equivalent(union_of([BOOL, FLOAT]), difference(REAL, INT, LEAVES)))
		self.assertIs(REAL, difference(REAL, STRING, LEAVES))
		self.assertIs(REAL, difference(REAL, INT))

class WideningTests(unittest.TestCase):

	def test_within_threshold(self):
		self.assertTrue(is_equivalent(union_of([INT, FLOAT]), widen([INT, FLOAT, INT], 3)))
		self.assertEqual(3, len(widen([INT, FLOAT, BOOL], 3).members))

	def test_past_threshold_to_abstract_ancestor(self):
		self.assertTrue(is_equivalent(REAL, widen([INT, FLOAT, BOOL, RATIONAL], 3)))

	def test_past_threshold_to_any(self):
		self.assertIs(ANY, widen([INT, STRING, FLOAT, BOOL], 3))
		growing = [INT, box(INT), box(box(INT)), box(box(box(INT)))]
		self.assertIs(ANY, widen(growing, 3))

class SplitTests(unittest.TestCase):

	def test_unions_split(self):
		cases = split_cases([union_of([INT, STRING]), FLOAT], {})
		self.assertEqual([(INT, FLOAT), (STRING, FLOAT)], cases)

	def test_abstract_types_split_into_leaves(self):
		self.assertEqual([(INT,), (BOOL,), (FLOAT,)], split_cases([REAL], LEAVES))
		self.assertEqual([(STRING,)], split_cases([STRING], LEAVES))

	def test_too_many_cases(self):
		u = union_of([INT, STRING])
		self.assertEqual(4, len(split_cases([u, u], LEAVES, max_split=4)))
		# Six leaf-cases is over the limit, so only the union splits.
		self.assertEqual([(REAL, INT), (REAL, STRING)], split_cases([REAL, u], LEAVES, max_split=4))
		self.assertEqual([(REAL, REAL)], split_cases([REAL, REAL], LEAVES, max_split=4))

class RewriterTests(unittest.TestCase):

	def test_rewrite(self):
		t = TypeVariable(syntax.TypeParameter("T"), NUMBER)
		self.assertTrue(is_equivalent(cell(INT), cell(t).visit(Rewriter({t: INT}))))
		self.assertTrue(is_equivalent(cell(NUMBER), cell(t).visit(Rewriter({}))))
		self.assertTrue(is_equivalent(MetaType(FLOAT), MetaType(t).visit(Rewriter({t: FLOAT}))))

class RenderTests(unittest.TestCase):

	def test_render(self):
		self.assertEqual("Union{}", repr(BOTTOM))
		self.assertEqual("Any", repr(ANY))
		self.assertEqual("Type{Number}", repr(MetaType(NUMBER)))
		self.assertEqual("Box{Int}", repr(box(INT)))
		self.assertEqual("Union{Float, Int}", repr(union_of([INT, FLOAT])))

if __name__ == '__main__':
	unittest.main()
