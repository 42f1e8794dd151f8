import json

import pytest

from geoconstruct.model.construction import ConstructionModel
from geoconstruct.model.geometry_primitives import Point
from geoconstruct.model.io import IOManager, ConstructionFileError

from conftest import add_points


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def build(model):
    add_points(model, (0, 0), (1.5, -2.25), (3, 1))
    model.add_line(0, 1, label="base")
    model.add_line(1, 2)
    model.add_extended_line(Point(-5, 0), Point(5, 0), label="axis")
    model.add_circle(Point(1, 1), 2.5)


def test_save_and_load_round_trip(tmp_path, model):
    build(model)
    filepath = str(tmp_path / "construction.json")
    IOManager.save_construction(model, filepath)

    loaded = ConstructionModel()
    IOManager.load_construction(loaded, filepath)
    assert loaded.snapshot() == model.snapshot()


def test_document_layout(model):
    build(model)
    root = IOManager.to_dict(model)
    assert set(root) == {"version", "points", "lines", "extendedLines", "circles"}
    assert root["points"][1] == {"x": 1.5, "y": -2.25, "label": "P2"}
    assert root["lines"][0] == {"a": 0, "b": 1, "label": "base"}
    assert root["extendedLines"][0] == {"ax": -5.0, "ay": 0.0, "bx": 5.0, "by": 0.0, "label": "axis"}
    assert root["circles"][0] == {"x": 1.0, "y": 1.0, "r": 2.5, "label": "C1"}


def test_save_creates_parent_directories(tmp_path, model):
    build(model)
    filepath = tmp_path / "nested" / "deeper" / "c.json"
    IOManager.save_construction(model, str(filepath))
    assert filepath.exists()


def test_custom_lines_create_their_points(model):
    root = {
        "points": [{"x": 0, "y": 0, "label": "O"}],
        "lines": [{
            "custom": True, "customAx": 0, "customAy": 0, "customBx": 2, "customBy": 2, "label": "diag"
        }],
    }
    IOManager.from_dict(model, root)
    assert [p.label for p in model.points] == ["O", "P2"]
    assert model.points[1].pos == Point(2.0, 2.0)
    assert (model.lines[0].a, model.lines[0].b, model.lines[0].label) == (0, 1, "diag")


def test_broken_entries_are_skipped(model):
    root = {
        "points": [{"x": 0, "y": 0}, "junk", {"x": "1", "y": 2}, {"x": 0, "y": 0, "label": "dup"}],
        "lines": [{"a": 0, "b": 2}, {"a": 0, "b": 9}, {"a": 0, "b": 3}, 7],
        "extendedLines": [{"ax": 1, "ay": 1, "bx": 1, "by": 1}],
        "circles": [{"x": 0, "y": 0, "r": 0}, {"x": 0, "y": 0, "r": -2}, {"x": 1, "y": 0, "r": 1}],
    }
    IOManager.from_dict(model, root)

    # "1" reads as 0.0; the fourth entry collapses onto the first point
    assert [p.pos for p in model.points] == [Point(0, 0), Point(0, 2)]
    assert [(l.a, l.b) for l in model.lines] == [(0, 1)]
    assert model.extended_lines == ()
    assert len(model.circles) == 1


def test_missing_labels_get_defaults(model):
    IOManager.from_dict(model, {
        "points": [{"x": 0, "y": 0}, {"x": 1, "y": 0, "label": ""}],
        "lines": [{"a": 0, "b": 1}],
        "circles": [{"x": 0, "y": 0, "r": 1}],
    })
    assert [p.label for p in model.points] == ["P1", "P2"]
    assert model.lines[0].label == "L1"
    assert model.circles[0].label == "C1"


def test_missing_sections_load_as_empty(model):
    add_points(model, (4, 4))
    IOManager.from_dict(model, {"version": "1.0"})
    assert model.is_empty()


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", "42"])
def test_invalid_document_leaves_model_untouched(tmp_path, model, content):
    build(model)
    before = model.snapshot()
    filepath = tmp_path / "bad.json"
    filepath.write_text(content, encoding="utf-8")

    with pytest.raises(ConstructionFileError):
        IOManager.load_construction(model, str(filepath))
    assert model.snapshot() == before


def test_missing_file_raises_os_error(tmp_path, model):
    with pytest.raises(OSError):
        IOManager.load_construction(model, str(tmp_path / "absent.json"))


def test_load_clears_selection(tmp_path, model):
    build(model)
    filepath = str(tmp_path / "c.json")
    IOManager.save_construction(model, filepath)
    model.selection.select(model.points[0].kind, 0)
    IOManager.load_construction(model, filepath)
    assert model.selection.is_empty()


def test_engine_reports_failures(tmp_path, engine):
    assert not engine.open_file(str(tmp_path / "absent.json"))
    bad = write_json(tmp_path / "bad.json", ["not", "a", "construction"])
    assert not engine.open_file(bad)

    good = write_json(tmp_path / "good.json", {"points": [{"x": 1, "y": 1}]})
    assert engine.open_file(good)
    assert len(engine.model.points) == 1
