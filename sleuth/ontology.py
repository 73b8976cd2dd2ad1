"""
These most-fundamental classes in the syntax class hierarchy
are separate from the rest to avoid various circular-import
scenarios. The resolution pass fills in fields on the concrete
IR types, and I use type-annotations to keep those fields sane,
but in consequence these abstract base classes need to remain
separate from the rest.
"""
from .location import Location, BUILT_IN

class Phrase:
	""" Anything that came out of the source program has a location. """
	where: Location = BUILT_IN

class Symbol(Phrase):
	"""
	Any named-and-defined thing that may be found in some name-space.
	Thus, functions, parameters, types, type-parameters, that sort of thing.
	"""
	def __init__(self, name:str, where:Location=BUILT_IN):
		assert isinstance(name, str), type(name)
		self.name = name
		self.where = where
	def __repr__(self): return "{%s:%s}" % (self.name, type(self).__name__)

class TypeSymbol(Symbol):
	def type_arity(self) -> int: raise NotImplementedError(type(self))

class TermSymbol(Symbol): pass

class TypeExpression(Phrase): pass

class ValueExpression(Phrase): pass

class Statement(Phrase): pass
