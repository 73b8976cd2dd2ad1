"""
Every phrase of IR comes tagged with where it came from.
Upstream collaborators hand over already-expanded code, so a location here
is just a file name and a line: enough to point a programmer at the call.
"""
from typing import NamedTuple

class Location(NamedTuple):
	""" Aimed at whatever prints error messages """
	path: str
	line: int

	def __str__(self): return "%s:%d"%(self.path, self.line)

BUILT_IN = Location("<built-in>", 0)
