import math

from geoconstruct.controller.engine import ConstructionEngine
from geoconstruct.model.entities import Kind
from geoconstruct.model.geometry_primitives import Point
from geoconstruct.model.io import IOManager
from geoconstruct.model.construction import ConstructionModel


def add_and_select(engine, *coords):
    """Add points and select them additively, in the given order."""
    for x, y in coords:
        engine.add_point(Point(x, y))
    engine.model.selection.clear()
    for x, y in coords:
        assert engine.model.select_point_by_position(Point(x, y), additive=True)


def names(engine):
    return [line.split(":")[0].split(";")[0] for line in engine.recorder.commands]


def build_session(engine):
    """Line through a circle, label one hit, delete the circle's center."""
    engine.start_recording()
    add_and_select(engine, (-4, 0), (4, 0))
    assert engine.connect_selected()
    add_and_select(engine, (0, 3), (0, 7))
    assert engine.add_circle_from_selection()

    engine.select(Kind.LINE, 0)
    assert engine.select(Kind.CIRCLE, 0, additive=True)
    assert engine.recompute_intersections()

    hit = engine.model.find_point(Point(-math.sqrt(7), 0), 1e-6)
    engine.select(Kind.POINT, hit)
    assert engine.set_label("A")

    engine.select(Kind.POINT, engine.model.find_point(Point(0, 3)))
    assert engine.delete_selected()
    engine.stop_recording()


def test_session_is_recorded(qapp):
    engine = ConstructionEngine()
    build_session(engine)
    assert names(engine) == [
        "addPoint", "addPoint", "addLine", "addPoint", "addPoint", "addCircle",
        "intersections", "setLabel", "deleteSelected",
    ]
    assert engine.recorder.commands[2] == "addLine:-4.00000000,0.00000000|4.00000000,0.00000000"
    assert engine.recorder.commands[7] == "setLabel;P=-2.64575131,0.00000000:A"
    labels = [p.label for p in engine.model.points]
    assert "A" in labels
    assert len(engine.model.points) == 5


def test_replay_reproduces_session(qapp):
    original = ConstructionEngine()
    build_session(original)

    replica = ConstructionEngine()
    for line in original.recorder.commands:
        assert replica.execute_command(line), line
    assert replica.snapshot() == original.snapshot()


def test_replay_after_renumbering(qapp):
    # The recorded coordinates still resolve after an unrelated point shifts every index
    original = ConstructionEngine()
    build_session(original)

    replica = ConstructionEngine()
    replica.add_point(Point(-3, -3))
    for line in original.recorder.commands:
        assert replica.execute_command(line), line
    assert [p.label for p in replica.model.points].count("A") == 1


class TestIntents:
    def test_connect_needs_two_points(self, engine):
        add_and_select(engine, (0, 0))
        assert not engine.connect_selected()
        add_and_select(engine, (0, 0), (1, 0))
        assert engine.connect_selected()
        assert not engine.connect_selected()
        assert len(engine.model.lines) == 1

    def test_circle_center_is_first_selected_point(self, engine):
        add_and_select(engine, (0, 7), (0, 3))
        assert engine.add_circle_from_selection()
        circle = engine.model.circles[0]
        assert circle.center == Point(0, 7)
        assert circle.radius == 4.0

    def test_circle_needs_exactly_two_points(self, engine):
        add_and_select(engine, (0, 0), (1, 0), (2, 0))
        assert not engine.add_circle_from_selection()
        assert engine.model.circles == ()

    def test_extend_records_selection(self, engine):
        engine.start_recording()
        add_and_select(engine, (0, 0), (1, 1))
        engine.connect_selected()
        assert not engine.extend_selected()
        engine.select(Kind.LINE, 0)
        assert engine.extend_selected()
        assert engine.recorder.commands[-1] == (
            "extendLines;L=0.00000000,0.00000000|1.00000000,1.00000000"
        )
        assert len(engine.model.extended_lines) == 1

    def test_add_normal(self, engine):
        engine.start_recording()
        add_and_select(engine, (0, 0), (2, 0))
        engine.connect_selected()
        engine.add_point(Point(1, 3))
        engine.select(Kind.LINE, 0)
        engine.select(Kind.POINT, 2, additive=True)
        assert engine.add_normal()
        assert engine.recorder.commands[-1].startswith("addNormal:0.00000000,0.00000000|2.00000000,0.00000000;")
        assert engine.model.find_point(Point(1, 0), 1e-6) is not None

    def test_add_normal_needs_line_and_point(self, engine):
        add_and_select(engine, (0, 0), (2, 0))
        assert not engine.add_normal()

    def test_intersect_all_with_empty_selection(self, engine):
        engine.start_recording()
        engine.model.add_circle(Point(0, 0), 5.0)
        engine.model.add_circle(Point(6, 0), 5.0)
        engine.clear_selection()
        assert engine.recompute_intersections()
        assert engine.recorder.commands[-1] == "intersectAll"
        assert len(engine.model.points) == 2

    def test_unsupported_pair(self, engine):
        add_and_select(engine, (0, 0), (1, 0))
        assert not engine.recompute_intersections()

    def test_label_needs_single_selection(self, engine):
        add_and_select(engine, (0, 0), (1, 0))
        assert not engine.set_label("X")

    def test_delete(self, engine):
        assert not engine.delete_selected()
        engine.add_point(Point(0, 0))
        assert engine.delete_all()
        assert engine.model.is_empty()
        assert engine.delete_all()

    def test_click_selects_and_clears(self, engine):
        engine.add_point(Point(1, 1))
        assert engine.click(Point(1.02, 1.0), 0.1)
        assert engine.model.selection.items() == [(Kind.POINT, 0)]
        assert not engine.click(Point(3, 3), 0.1)
        assert engine.model.selection.is_empty()

    def test_select_out_of_range(self, engine):
        assert not engine.select(Kind.CIRCLE, 0)


class TestInterpreter:
    def test_add_line_creates_missing_points(self, engine):
        assert engine.execute_command("addLine:0,0|1,0")
        assert [p.pos for p in engine.model.points] == [Point(0, 0), Point(1, 0)]
        assert len(engine.model.lines) == 1

    def test_add_circle_with_unknown_points(self, engine):
        assert not engine.execute_command("addCircle:0,0|1,0")
        assert engine.model.circles == ()

    def test_commands_without_payload_use_current_selection(self, engine):
        add_and_select(engine, (0, 0), (2, 0))
        assert engine.execute_command("addCircle")
        assert engine.model.circles[0].radius == 2.0

    def test_garbage_is_rejected(self, engine):
        assert not engine.execute_command("frobnicate:1,2")
        assert not engine.execute_command("addPoint:x,y")
        assert engine.model.is_empty()

    def test_open_and_save(self, engine, tmp_path):
        engine.add_point(Point(2, 2))
        filepath = str(tmp_path / "c.json")
        assert engine.execute_command(f"save:{filepath}")

        other = ConstructionEngine()
        assert other.execute_command(f"open:{filepath}")
        assert other.model.points[0].pos == Point(2, 2)


class TestRecordingAndSignals:
    def test_signals(self, engine):
        events = []
        engine.model_changed.connect(lambda: events.append("model"))
        engine.command_recorded.connect(lambda line: events.append(line))
        engine.recording_changed.connect(lambda on: events.append(on))

        engine.add_point(Point(0, 0))
        assert events == ["model"]
        events.clear()

        assert engine.toggle_recording()
        engine.add_point(Point(1, 0))
        assert not engine.toggle_recording()
        assert events == [True, "addPoint:1.00000000,0.00000000", "model", False]

    def test_macro_file_round_trip(self, engine, tmp_path):
        engine.start_recording()
        engine.add_point(Point(0, 0))
        engine.stop_recording()
        filepath = str(tmp_path / "demo.macro")
        assert engine.save_macro(filepath)

        other = ConstructionEngine()
        assert other.open_macro(filepath)
        assert other.recorder.commands == engine.recorder.commands
        assert not other.open_macro(str(tmp_path / "absent.macro"))


def test_auto_save(qapp, tmp_path):
    storage = tmp_path / "session" / "auto.json"
    engine = ConstructionEngine(storage_path=str(storage))
    engine.add_point(Point(1, 2))
    engine.add_point(Point(3, 4))

    restored = ConstructionModel()
    IOManager.load_construction(restored, str(storage))
    assert [p.pos for p in restored.points] == [Point(1, 2), Point(3, 4)]


def test_replay_keeps_explicit_point_labels(qapp):
    original = ConstructionEngine()
    original.start_recording()
    original.add_point(Point(1, 1), label="Apex")
    original.add_point(Point(2, 1))
    assert original.recorder.commands[0] == "addPoint:1.00000000,1.00000000;Apex"

    replica = ConstructionEngine()
    for line in original.recorder.commands:
        assert replica.execute_command(line)
    assert [p.label for p in replica.model.points] == ["Apex", "P2"]


class TestUnresolvedSelection:
    def build(self, engine):
        engine.model.add_circle(Point(0, 0), 5.0)
        engine.model.add_circle(Point(6, 0), 5.0)

    def test_missing_pair_does_not_sweep_everything(self, engine):
        self.build(engine)
        assert not engine.execute_command("intersections;C=10.0,10.0,1.0#20.0,20.0,1.0")
        assert engine.model.points == ()

    def test_partially_found_pair_is_skipped(self, engine):
        self.build(engine)
        assert not engine.execute_command("intersections;C=0.0,0.0,5.0#20.0,20.0,1.0")
        assert engine.model.points == ()
        assert engine.model.selection.is_empty()

    def test_missing_objects_are_not_deleted_or_relabelled(self, engine):
        self.build(engine)
        engine.select(Kind.CIRCLE, 0)
        assert not engine.execute_command("deleteSelected;C=9.0,9.0,1.0")
        assert not engine.execute_command("setLabel;C=9.0,9.0,1.0:lost")
        assert len(engine.model.circles) == 2
        assert [c.label for c in engine.model.circles] == ["C1", "C2"]

    def test_found_pair_still_intersects(self, engine):
        self.build(engine)
        assert engine.execute_command("intersections;C=0.0,0.0,5.0#6.0,0.0,5.0")
        assert len(engine.model.points) == 2
