from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from planner_map.core.config.map_config import MapConfig, MapConfigError, config_to_dict, load_and_merge
from planner_map.core.edit.edit_model import add_node, create_link, delete_node, remove_link, unlock_node
from planner_map.core.errors import MapError, MapLoadError, MapValidationError
from planner_map.core.graph.graph_index import build_index
from planner_map.core.io.load_model import load_model, save_model
from planner_map.core.layout.compute_layout import LAYOUT_STRATEGIES, compute_layout
from planner_map.core.layout.layout_cache import LayoutCache, Viewport
from planner_map.core.lint.lint_model import lint_model
from planner_map.core.model import GraphModel
from planner_map.core.rollup.compute_totals import compute_totals
from planner_map.core.scene.build_scene import build_scene, format_amount, scene_to_dict
from planner_map.core.session import MapSession
from planner_map.core.sizing.compute_sizes import compute_sizes
from planner_map.core.validate.validate_model import summarize_model, validate_model

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine debug output to stderr"),
) -> None:
    """Planner map CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a planner map file."""
    _check_format(format, "E_VALIDATE_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, *, exit_code: int, errors: list[MapError], summary: dict | None) -> None:
        payload = {
            "tool": "planner-map",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [e.to_item() for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        raw = load_model(path)
    except MapLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    model, errors = validate_model(raw)
    if errors or model is None:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    if format == "text":
        typer.echo(summarize_model(model))
        return

    counts = Counter([n.status.value for n in model.nodes])
    summary = {
        "node_count": len(model.nodes),
        "link_count": len(model.links),
        "status_counts": {k: int(v) for k, v in counts.items()},
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint a planner map (graph rules beyond shape validation)."""
    _check_format(format, "E_LINT_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, errors: list[MapError], exit_code: int) -> None:
        payload = {
            "tool": "planner-map",
            "command": "lint",
            "ok": ok,
            "error_count": len(errors),
            "errors": [e.to_item() for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        raw = load_model(path)
    except MapLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    _, validation_errors = validate_model(raw)
    errors: list[MapError] = [*lint_model(raw), *validation_errors]

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json(False, errors, 2)
    _emit_json(True, [], 0)


@app.command("totals")
def totals(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Show rolled-up cost/time per node."""
    _check_format(format, "E_TOTALS_UNKNOWN_FORMAT")
    model = _load_valid_model(path)
    index = build_index(model.nodes, model.links)
    rollup = compute_totals(index)

    if format == "json":
        payload = {nid: {"cost": t.cost, "time": t.time} for nid, t in rollup.items()}
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="Rollup")
    table.add_column("id")
    table.add_column("name")
    table.add_column("status")
    table.add_column("cost", justify="right")
    table.add_column("time (h)", justify="right")
    for node in model.nodes:
        t = rollup[node.id]
        table.add_row(node.id, node.name, node.status.value, format_amount(t.cost), format_amount(t.time))
    console.print(table)


@app.command("layout")
def layout(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Layout strategy: radial|force"),
    width: Optional[float] = typer.Option(None, "--width", help="Viewport width"),
    height: Optional[float] = typer.Option(None, "--height", help="Viewport height"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML config overrides"),
) -> None:
    """Print per-node position and radius as JSON."""
    config = _load_config(config_file)
    strategy = _check_strategy(strategy or config.layout_strategy)
    model = _load_valid_model(path)
    viewport = Viewport(width=width or config.viewport_width, height=height or config.viewport_height)

    index = build_index(model.nodes, model.links)
    sizes = compute_sizes(compute_totals(index), index, config=config)
    positions = compute_layout(index, sizes, LayoutCache(), viewport=viewport, strategy=strategy, config=config)

    payload = {
        nid: {"x": p.x, "y": p.y, "radius": sizes[nid].radius}
        for nid, p in positions.items()
    }
    typer.echo(json.dumps(payload, indent=2))


@app.command("render")
def render(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    out: str = typer.Option(..., "--out", help="Path to write the scene JSON"),
    selected: Optional[str] = typer.Option(None, "--selected", help="Node id to mark as selected"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Layout strategy: radial|force"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML config overrides"),
) -> None:
    """Write the renderer scene (nodes, sizes, styles, link paths) as JSON."""
    config = _load_config(config_file)
    strategy = _check_strategy(strategy or config.layout_strategy)
    model = _load_valid_model(path)

    scene = build_scene(model, config=config, strategy=strategy, selected_id=selected)
    with open(out, "w", encoding="utf-8") as f:
        json.dump(scene_to_dict(scene), f, indent=2)
    typer.echo(f"OK: wrote scene to {out} ({len(scene.nodes)} nodes, {len(scene.links)} links)")


@app.command("drag")
def drag(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    node_id: str = typer.Argument(..., help="Node to drag (its subtree moves with it)"),
    dx: float = typer.Option(0.0, "--dx", help="Horizontal move in map units"),
    dy: float = typer.Option(0.0, "--dy", help="Vertical move in map units"),
    out: Optional[str] = typer.Option(None, "--out", help="Write here instead of updating PATH"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML config overrides"),
) -> None:
    """Move a node and its subtree, locking them at the new spot."""
    config = _load_config(config_file)
    model = _load_valid_model(path)
    target = out or path

    session = MapSession(model, config=config, on_commit=lambda m: save_model(m, target))
    scene = session.recompute()
    start = next((n.position for n in scene.nodes if n.id == node_id), None)
    if start is None or not session.begin_drag(node_id, start):
        _print_errors(
            [
                MapValidationError(
                    code="E_DRAG_UNKNOWN_NODE",
                    message=f"unknown node id: {node_id}",
                    file=path,
                    path="node_id",
                )
            ]
        )
        raise typer.Exit(code=2)

    session.update_drag(start.translated(dx, dy))
    result = session.end_drag()
    if result is None or result.was_click:
        typer.echo(f"OK: no movement (within drag threshold {format_amount(config.drag_threshold)})")
        return
    typer.echo(f"OK: moved {len(result.moved_ids)} node(s), wrote {target}")


@app.command("add-node")
def add_node_cmd(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    name: str = typer.Option("New Node", "--name", help="Display name"),
    parent: Optional[str] = typer.Option(None, "--parent", help="Existing node the new one depends on"),
) -> None:
    """Add a node, optionally as a child of an existing node."""
    model = _load_valid_model(path)
    if parent is not None and model.node(parent) is None:
        _fail_unknown(path, parent, "parent")
    node = add_node(model, name=name, parent_id=parent)
    save_model(model, path)
    typer.echo(f"OK: added {node.id}")


@app.command("link")
def link_cmd(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    required: str = typer.Option(..., "--required", help="Prerequisite node id"),
    dependent: str = typer.Option(..., "--dependent", help="Dependent node id"),
) -> None:
    """Link a dependent node to the node it requires."""
    model = _load_valid_model(path)
    link = create_link(model, dependent_id=dependent, required_id=required)
    if link is None:
        _print_errors(
            [
                MapValidationError(
                    code="E_LINK_INVALID",
                    message="both ids must exist and differ",
                    file=path,
                    path="link",
                )
            ]
        )
        raise typer.Exit(code=2)
    save_model(model, path)
    typer.echo(f"OK: added link {link.id}")


@app.command("unlink")
def unlink_cmd(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    link_id: str = typer.Argument(..., help="Link id to remove"),
) -> None:
    """Remove a link."""
    model = _load_valid_model(path)
    if not remove_link(model, link_id):
        _fail_unknown(path, link_id, "link_id")
    save_model(model, path)
    typer.echo(f"OK: removed link {link_id}")


@app.command("delete-node")
def delete_node_cmd(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    node_id: str = typer.Argument(..., help="Node id to delete"),
) -> None:
    """Delete a node and every link touching it."""
    model = _load_valid_model(path)
    if not delete_node(model, node_id):
        _fail_unknown(path, node_id, "node_id")
    save_model(model, path)
    typer.echo(f"OK: deleted {node_id}")


@app.command("unlock")
def unlock_cmd(
    path: str = typer.Argument(..., help="Path to a map file (.yaml/.yml/.json)"),
    node_id: str = typer.Argument(..., help="Node id to return to automatic layout"),
    subtree: bool = typer.Option(False, "--subtree", help="Unlock every descendant as well"),
) -> None:
    """Return a dragged node to automatic layout."""
    model = _load_valid_model(path)
    if model.node(node_id) is None:
        _fail_unknown(path, node_id, "node_id")
    unlocked = unlock_node(model, node_id, subtree=subtree)
    save_model(model, path)
    typer.echo(f"OK: unlocked {len(unlocked)} node(s)")


@app.command("config")
def config_cmd(
    config_file: Optional[str] = typer.Option(None, "--config", help="Optional YAML config overrides"),
) -> None:
    """Print the effective configuration."""
    config = _load_config(config_file)
    for key, value in config_to_dict(config).items():
        typer.echo(f"{key}: {value}")


def _load_valid_model(path: str) -> GraphModel:
    try:
        raw = load_model(path)
    except MapLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    model, errors = validate_model(raw)
    if errors or model is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)
    return model


def _load_config(config_file: Optional[str]) -> MapConfig:
    try:
        return load_and_merge(config_file)
    except FileNotFoundError:
        _print_errors(
            [
                MapLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config_file}",
                    file=None,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=1)
    except MapConfigError as e:
        _print_errors(
            [
                MapValidationError(
                    code="E_CONFIG_FILE_INVALID",
                    message=str(e),
                    file=None,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=2)


def _check_strategy(name: str) -> str:
    if name not in LAYOUT_STRATEGIES:
        _print_errors(
            [
                MapValidationError(
                    code="E_LAYOUT_UNKNOWN_STRATEGY",
                    message=f"unknown strategy: {name} (choose one of: {', '.join(sorted(LAYOUT_STRATEGIES))})",
                    file=None,
                    path="strategy",
                )
            ]
        )
        raise typer.Exit(code=2)
    return name


def _check_format(format: str, code: str) -> None:
    if format not in ("text", "json"):
        _print_errors(
            [
                MapValidationError(
                    code=code,
                    message=f"unknown format: {format} (choose one of: text, json)",
                    file=None,
                    path="format",
                )
            ]
        )
        raise typer.Exit(code=2)


def _fail_unknown(file: str, ident: str, path: str) -> None:
    _print_errors(
        [
            MapValidationError(
                code="E_UNKNOWN_ID",
                message=f"unknown id: {ident}",
                file=file,
                path=path,
            )
        ]
    )
    raise typer.Exit(code=2)


def _print_errors(errors: list[MapError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="planner-map")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
