import pytest

from planner_map.core.errors import MapStateError
from planner_map.core.io.load_model import load_model
from planner_map.core.layout.radial_layout import RadialLayout
from planner_map.core.model import Point
from planner_map.core.session import MapSession
from planner_map.core.validate.validate_model import validate_model


def _cabin():
    model, _ = validate_model(load_model("examples/cabin-map.yaml"))
    return model


class _ReentrantLayout:
    """Tries to start a drag from inside a layout pass."""

    name = "reentrant"

    def __init__(self):
        self.session = None
        self.inner = RadialLayout()

    def layout(self, index, sizes, cache, locked, viewport):
        self.session.begin_drag("N-001", Point(0, 0))
        return self.inner.layout(index, sizes, cache, locked, viewport)


def test_drag_is_refused_while_a_pass_is_in_flight():
    strategy = _ReentrantLayout()
    session = MapSession(_cabin(), strategy=strategy)
    strategy.session = session

    with pytest.raises(MapStateError) as exc:
        session.recompute()
    assert exc.value.code == "E_PASS_IN_FLIGHT"
    assert session.layout_in_flight is False
    assert session.dragging is False


def test_new_refresh_cancels_the_pending_one():
    session = MapSession(_cabin())
    first = session.schedule_refresh()
    second = session.schedule_refresh()

    assert first.cancelled is True
    assert second.cancelled is False
    assert session.run_pending() is not None
    assert session.run_pending() is None


def test_drag_through_session_updates_scene_and_commits():
    commits = []
    session = MapSession(_cabin(), on_commit=commits.append)
    scene = session.recompute()
    start = {n.id: n.position for n in scene.nodes}

    assert session.begin_drag("N-003", start["N-003"])
    assert session.selected_id == "N-003"
    session.update_drag(start["N-003"].translated(30, 40))
    live = {n.id: n for n in session.scene.nodes}
    assert live["N-004"].position == start["N-004"].translated(30, 40)
    assert live["N-001"].position == start["N-001"]

    result = session.end_drag()
    assert result.moved_ids == ["N-003", "N-004"]
    assert len(commits) == 1

    refreshed = session.run_pending()
    nodes = {n.id: n for n in refreshed.nodes}
    assert nodes["N-003"].position == start["N-003"].translated(30, 40)
    assert nodes["N-003"].locked is True
    assert "node--selected" in nodes["N-003"].classes


def test_pointer_goes_through_the_view_transform():
    session = MapSession(_cabin())
    session.view = session.view.panned(100, 0)
    assert session.pointer_to_map(150, 20) == Point(50, 20)
