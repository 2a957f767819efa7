from __future__ import annotations

from typing import List, Optional


def parse_enum_range(descriptor: Optional[str]) -> Optional[List[str]]:
	"""Parse an enum range descriptor into ordinal names.

	'{alpha=0,beta=1,gamma=2}' -> ['alpha', 'beta', 'gamma']

	Ordinals are assumed zero-based and already in order, so the '=value'
	parts are discarded rather than used for sorting.
	Returns None when the descriptor is empty or yields no names.
	"""
	if not descriptor:
		return None

	names: List[str] = []
	current: List[str] = []
	i = 0
	n = len(descriptor)
	while i < n:
		ch = descriptor[i]
		if ch in "{} ":
			i += 1
			continue
		if ch == "=":
			# skip the =value segment
			while i < n and descriptor[i] not in ",}":
				i += 1
			continue
		if ch == ",":
			names.append("".join(current))
			current = []
			i += 1
			continue
		current.append(ch)
		i += 1
	names.append("".join(current))

	names = [name for name in names if name]
	return names or None
