from __future__ import annotations


class PointIndexError(Exception):
	pass


class AddressingError(PointIndexError):
	"""Raised when a point address cannot be derived for a component."""


class SealedIndexError(PointIndexError):
	"""Raised when a published index is mutated."""


class RebuildFailure(PointIndexError):
	"""Raised when a rebuild aborts outside the per-node boundary."""


class RebuildInProgressError(PointIndexError):
	pass


class StationDefinitionError(PointIndexError):
	pass
