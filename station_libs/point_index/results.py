from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from .tree import Node


class EngineState(str, enum.Enum):
	IDLE = "idle"
	RUNNING = "running"
	COMPLETED = "completed"
	FAILED = "failed"


class NodeOutcome(str, enum.Enum):
	INDEXED = "indexed"
	SKIPPED = "skipped"
	FAILED = "failed"


class SkipReason(str, enum.Enum):
	NOT_A_POINT = "not_a_point"
	UNSUPPORTED_POINT = "unsupported_point"
	NO_PARENT = "no_parent"
	EXCLUDED_SOURCE = "excluded_source"


def describe_node(node: Node) -> str:
	"""'Display Name [slot:/path]' for log lines, falling back to repr() for broken nodes."""
	try:
		return f"{node.display_name} [{node.slot_path}]"
	except Exception:
		return repr(node)


def describe_error(error: BaseException) -> str:
	"""str(error), or its type name when the exception cannot be rendered."""
	try:
		return str(error)
	except Exception:
		return f"<unprintable {type(error).__name__}>"


@dataclass(frozen=True)
class NodeResult:
	"""Outcome of indexing a single component."""
	outcome: NodeOutcome
	node: Any
	point: Any = None
	source: Any = None
	replaced: Any = None
	reason: Optional[SkipReason] = None
	error: Optional[BaseException] = None

	@classmethod
	def indexed(cls, node: Node, point, source, replaced=None) -> "NodeResult":
		return cls(NodeOutcome.INDEXED, node, point=point, source=source, replaced=replaced)

	@classmethod
	def skipped(cls, node: Node, reason: SkipReason) -> "NodeResult":
		return cls(NodeOutcome.SKIPPED, node, reason=reason)

	@classmethod
	def failed(cls, node: Node, error: BaseException) -> "NodeResult":
		return cls(NodeOutcome.FAILED, node, error=error)

	@property
	def ok(self) -> bool:
		return self.outcome == NodeOutcome.INDEXED


@dataclass
class RebuildReport:
	started_at: datetime = field(default_factory=datetime.now)
	state: EngineState = EngineState.RUNNING
	elapsed_seconds: float = 0.0
	components_scanned: int = 0
	num_sources: int = 0
	num_points: int = 0
	indexed: int = 0
	collisions: int = 0
	skipped: Counter = field(default_factory=Counter)
	failures: List[NodeResult] = field(default_factory=list)
	error: Optional[BaseException] = None

	def record(self, result: NodeResult) -> None:
		self.components_scanned += 1
		if result.outcome == NodeOutcome.INDEXED:
			self.indexed += 1
			if result.replaced is not None:
				self.collisions += 1
		elif result.outcome == NodeOutcome.SKIPPED:
			self.skipped[result.reason] += 1
		else:
			self.failures.append(result)

	@property
	def num_failed(self) -> int:
		return len(self.failures)

	def summary(self) -> str:
		return f"{self.elapsed_seconds:.3f}s, {self.num_sources} sources, {self.num_points} points"
