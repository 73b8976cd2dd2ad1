import unittest
from sleuth import preamble
from sleuth.cache import InferenceCache, ResourceLimitExceeded
from sleuth.calculus import BOTTOM

INT, FLOAT, STRING = preamble.int_type, preamble.float_type, preamble.string_type

class CacheTests(unittest.TestCase):

	def setUp(self):
		self.cache = InferenceCache(max_entries=3)

	def test_placeholder_then_sealed(self):
		key = self.cache.key("f", [INT])
		memo = self.cache.fetch(key)
		self.assertFalse(memo.is_solved)
		self.assertIs(BOTTOM, memo.guess)
		self.assertIs(memo, self.cache.fetch(key))
		self.cache.seal(key, FLOAT, ["oops"])
		result = self.cache.fetch(key).result()
		self.assertIs(FLOAT, result.return_type)
		self.assertEqual(("oops",), result.errors)
		self.assertTrue(result.converged)
		with self.assertRaises(AssertionError):
			self.cache.seal(key, INT)

	def test_rollback_forgets_what_was_sealed_since_the_mark(self):
		early, late, pending = (self.cache.key(n, [INT]) for n in "fgh")
		self.cache.fetch(early)
		self.cache.seal(early, INT)
		mark = self.cache.mark()
		self.cache.fetch(pending)
		self.cache.fetch(late)
		self.cache.seal(late, STRING)
		self.cache.rollback(mark)
		self.assertEqual(2, len(self.cache))
		self.assertTrue(self.cache.fetch(early).is_solved)
		self.assertFalse(self.cache.fetch(late).is_solved)
		self.assertFalse(self.cache.fetch(pending).is_solved)
		self.assertEqual(3, len(self.cache))
		# Rolling back again to the same place is harmless.
		self.cache.rollback(mark)
		self.assertEqual(3, len(self.cache))

	def test_cap(self):
		for name in "fgh": self.cache.fetch(self.cache.key(name, [INT]))
		self.cache.fetch(self.cache.key("f", [INT]))
		with self.assertRaises(ResourceLimitExceeded) as ctx:
			self.cache.fetch(self.cache.key("f", [FLOAT]))
		self.assertEqual("exceeded the limit of 3 distinct inference-cache entries", str(ctx.exception))
		self.cache.clear()
		self.assertEqual(0, len(self.cache))

if __name__ == '__main__':
	unittest.main()
