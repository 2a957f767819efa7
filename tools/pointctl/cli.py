from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from station_libs.config_models.index_settings import load_index_settings
from station_libs.point_index.access import lookup_point, lookup_source, read_point_value, resolve_point_node, source_count
from station_libs.point_index.engine import ReindexEngine
from station_libs.point_index.errors import RebuildFailure, StationDefinitionError
from station_libs.point_index.index import Point, Source
from station_libs.point_index.results import describe_error, describe_node
from station_libs.point_index.slot_path import split_path
from station_libs.point_index.station_tree import load_station
from stationbuild.generators.index_snapshot import IndexSnapshotGenerator


DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config_sources"
DEFAULT_STATION_PATH = DEFAULT_CONFIG_DIR / "station_definition.yaml"
DEFAULT_SETTINGS_PATH = DEFAULT_CONFIG_DIR / "index_settings.yaml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


app = typer.Typer(help="pointctl - browse the station point index")


@app.callback()
def common(
	ctx: typer.Context,
	station: Path = typer.Option(DEFAULT_STATION_PATH, "--station", help="Path to the station definition YAML"),
	settings: Path = typer.Option(DEFAULT_SETTINGS_PATH, "--settings", help="Path to index settings YAML (defaults apply if missing)"),
	verbose: bool = typer.Option(False, "--verbose", "-v", help="Log per-component skip reasons"),
):
	"""Global options shared by all commands."""
	ctx.obj = {"station": station, "settings": settings, "verbose": verbose}


def _build_engine(ctx: typer.Context) -> ReindexEngine:
	opts = ctx.obj
	try:
		settings = load_index_settings(opts["settings"])
		tree = load_station(opts["station"])
	except (StationDefinitionError, ValueError, yaml.YAMLError) as e:
		typer.secho(str(e), fg=typer.colors.RED)
		raise typer.Exit(code=1)
	level = "DEBUG" if opts["verbose"] else settings.log_level
	logging.basicConfig(level=level, format=LOG_FORMAT)
	engine = ReindexEngine(tree, settings)
	try:
		engine.rebuild()
	except RebuildFailure as e:
		typer.secho(str(e), fg=typer.colors.RED)
		raise typer.Exit(code=2)
	return engine


def _format_source(source: Source) -> str:
	return f"{source.id} | {source.name} | path={source.path} | points={source.num_points()}"


def _format_point(point: Point) -> str:
	line = f"{point.addr} | {point.name} | id={point.id} | kind={point.kind.name.lower()}"
	if point.unit:
		line += f" | unit={point.unit}"
	if point.enums:
		line += f" | enums=[{','.join(point.enums)}]"
	return line


def _match_sources(sources: List[Source], match: Optional[str]) -> List[Source]:
	if not match:
		return sources
	mk = match.lower()
	# path fragments match the trailing segments of the path, plain text matches anywhere
	if "/" in match:
		want = [s.lower() for s in split_path(match)]
		return [s for s in sources if _ends_with_segments([p.lower() for p in split_path(s.path)], want)]
	return [s for s in sources if mk in s.name.lower() or mk in s.path.lower()]


def _ends_with_segments(segments: List[str], want: List[str]) -> bool:
	return bool(want) and segments[-len(want):] == want


@app.command("rebuild")
def rebuild(ctx: typer.Context):
	"""Rebuild the index and print the summary."""
	engine = _build_engine(ctx)
	report = engine.last_report
	print(f"Reindex complete [{report.summary()}]")
	print(f"components scanned: {report.components_scanned}")
	print(f"address collisions: {report.collisions}")
	for reason, count in sorted(report.skipped.items(), key=lambda kv: kv[0].value):
		print(f"skipped ({reason.value}): {count}")
	for failure in report.failures:
		typer.secho(f"FAILED: {describe_node(failure.node)}: {describe_error(failure.error)}", fg=typer.colors.YELLOW)


@app.command("sources")
def sources_list(
	ctx: typer.Context,
	match: Optional[str] = typer.Option(None, "--match", help="Substring of name/path, or a trailing '/'-separated path fragment"),
	limit: int = typer.Option(50, "--limit", help="Max results to show"),
):
	engine = _build_engine(ctx)
	sources = sorted(engine.index.sources(), key=lambda s: s.path)
	for s in _match_sources(sources, match)[: max(0, limit)]:
		print(_format_source(s))


@app.command("points")
def points_list(
	ctx: typer.Context,
	source_id: Optional[str] = typer.Option(None, "--source", help="Only points of this source id"),
	match: Optional[str] = typer.Option(None, "--match", help="Substring match on point name or address"),
	limit: int = typer.Option(50, "--limit", help="Max results to show"),
):
	engine = _build_engine(ctx)
	if source_id is not None:
		source = lookup_source(engine.index, source_id)
		if source is None:
			typer.secho(f"No source '{source_id}'.", fg=typer.colors.RED)
			raise typer.Exit(code=1)
		sources = [source]
	else:
		sources = sorted(engine.index.sources(), key=lambda s: s.path)
	shown = 0
	mk = match.lower() if match else None
	for s in sources:
		for _, p in sorted(s.points.items()):
			if mk and mk not in p.name.lower() and mk not in p.addr.lower():
				continue
			if shown >= max(0, limit):
				return
			print(f"{s.id} | {_format_point(p)}")
			shown += 1


@app.command("lookup")
def lookup(
	ctx: typer.Context,
	source_id: str = typer.Argument(..., help="Source id"),
	addr: str = typer.Argument(..., help="Point address, e.g. av.Points.ZoneTemp"),
):
	"""Show one point and its current value."""
	engine = _build_engine(ctx)
	point = lookup_point(engine.index, source_id, addr)
	if point is None:
		typer.secho(f"No point '{addr}' in source '{source_id}'.", fg=typer.colors.RED)
		raise typer.Exit(code=1)
	print(_format_point(point))
	node = resolve_point_node(engine.tree, point)
	if node is not None:
		print(f"component: {node.slot_path} ({node.handle})")
	value = read_point_value(point)
	if value is None:
		print("value: <none>")
	else:
		print(f"value: {value.value} {{{value.status}}}")


@app.command("export")
def export(
	ctx: typer.Context,
	out: Path = typer.Option(..., "--out", help="Output JSON path"),
):
	"""Write the index as a JSON snapshot."""
	engine = _build_engine(ctx)
	gen = IndexSnapshotGenerator(engine.index, out, report=engine.last_report, station_name=engine.tree.name)
	if not gen.generate():
		raise typer.Exit(code=1)


@app.command("shell")
def shell(ctx: typer.Context) -> None:
	"""Interactive session for browsing sources and points."""
	engine = _build_engine(ctx)
	current_source: Optional[Source] = None
	last_matches: List[Source] = []

	def _print_help() -> None:
		print("Commands:")
		print("  help                     Show this help")
		print("  sources [substr]         List sources (optionally filter by name/path)")
		print("  use <id|#N>              Select a source by id or last list index")
		print("  points [substr]          List points of the selected source")
		print("  read <addr>              Show a point of the selected source with its value")
		print("  rebuild                  Rebuild the index now")
		print("  show                     Show index counts and current selection")
		print("  exit|quit                Leave the shell")

	_print_help()
	while True:
		try:
			line = input("pointctl> ").strip()
		except (EOFError, KeyboardInterrupt):
			print()
			break
		if not line:
			continue
		parts = line.split()
		cmd = parts[0].lower()
		args = parts[1:]

		if cmd in {"exit", "quit"}:
			break
		if cmd == "help":
			_print_help()
			continue
		if cmd == "sources":
			sources = sorted(engine.index.sources(), key=lambda s: s.path)
			last_matches = _match_sources(sources, args[0] if args else None)
			for idx, s in enumerate(last_matches[:200]):
				print(f"#{idx}: {_format_source(s)}")
			continue
		if cmd == "use":
			if not args:
				print("usage: use <id|#N>")
				continue
			arg = args[0]
			if arg.startswith("#") and arg[1:].isdigit():
				idx = int(arg[1:])
				if 0 <= idx < len(last_matches):
					# re-fetch from the current snapshot in case of a rebuild since listing
					current_source = lookup_source(engine.index, last_matches[idx].id)
				else:
					print("index out of range")
					continue
			else:
				current_source = lookup_source(engine.index, arg)
			if current_source is None:
				print("No such source")
			else:
				print(f"Selected: {current_source.name} ({current_source.id})")
			continue
		if cmd == "points":
			if current_source is None:
				print("No source selected. Use 'use' first.")
				continue
			mk = args[0].lower() if args else None
			for _, p in sorted(current_source.points.items()):
				if mk and mk not in p.name.lower() and mk not in p.addr.lower():
					continue
				print(_format_point(p))
			continue
		if cmd == "read":
			if current_source is None or not args:
				print("usage: read <addr> (after 'use')")
				continue
			point = lookup_point(engine.index, current_source.id, args[0])
			if point is None:
				print("No such point")
				continue
			value = read_point_value(point)
			print(_format_point(point))
			print("value: <none>" if value is None else f"value: {value.value} {{{value.status}}}")
			continue
		if cmd == "rebuild":
			engine.trigger_rebuild()
			report = engine.last_report
			print(f"state={engine.state.value} [{report.summary()}]")
			if current_source is not None:
				current_source = lookup_source(engine.index, current_source.id)
			continue
		if cmd == "show":
			print(f"sources={source_count(engine.index)} points={engine.index.num_points()} state={engine.state.value}")
			if current_source:
				print(f"source: {_format_source(current_source)}")
			else:
				print("source: <none>")
			continue
		print("Unknown command. Type 'help' for usage.")


def main() -> None:
	app()


if __name__ == "__main__":
	main()
