"""
The bounds that guarantee every run terminates, even on programs
engineered to diverge under real execution. The command line can
adjust them; everything else takes them as given.
"""
from typing import NamedTuple

class Limits(NamedTuple):
	widen_threshold: int = 3       # Distinct types tolerated before widening kicks in.
	union_limit: int = 4           # Members a join may carry before it collapses to a common ancestor.
	max_split: int = 16            # Dispatch cases a single call may split into.
	max_cache_entries: int = 4096  # Distinct (function, argument-types) keys per entry call.
	max_depth: int = 32            # Nested calls under one entry call.

DEFAULT_LIMITS = Limits()
