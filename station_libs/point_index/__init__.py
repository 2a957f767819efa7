"""Station point index.

Modules:
- tree: Read-only contract for the station component tree and type lineage
- station_tree: In-memory component tree loaded from a station definition
- slot_path: Slot path escaping and address suffix conversion
- ids: Source and point identifiers derived from component handles
- classifier: Point kind classification and address assembly
- enum_range: Enum range descriptor parsing
- sources: Source resolution for points
- index: Point / Source / Index model
- results: Per-node results and rebuild reports
- engine: Reindex engine with atomic publication
- access: Read and write-back helpers for API layers
"""

__all__ = [
	"tree",
	"station_tree",
	"slot_path",
	"ids",
	"classifier",
	"enum_range",
	"sources",
	"index",
	"results",
	"engine",
	"access",
	"errors",
]
