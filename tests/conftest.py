import pytest
from PySide6.QtCore import QCoreApplication

from geoconstruct.controller.engine import ConstructionEngine
from geoconstruct.model.construction import ConstructionModel
from geoconstruct.model.geometry_primitives import Point


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def engine(qapp):
    return ConstructionEngine()


@pytest.fixture
def model():
    return ConstructionModel()


def add_points(model: ConstructionModel, *coords: tuple[float, float]) -> None:
    for x, y in coords:
        assert model.add_point(Point(x, y))
