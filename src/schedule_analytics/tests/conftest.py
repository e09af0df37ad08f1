import pytest

from schedule_analytics.tests.builders import make_item, make_task


@pytest.fixture
def abc_tasks():
    """
    A (5) -> B (3)
    A (5) -> C (4)
    """
    return [
        make_task("A", 5),
        make_task("B", 3, deps=["A"]),
        make_task("C", 4, deps=["A"]),
    ]


@pytest.fixture
def wbs_items():
    """
    1.0 Project (1000)
      1.1 Design (200)
        1.1.1 Sketches (50)
      1.2 Build (300)
      1.10 Launch (10)
    2.0 Operations (400)
    """
    return [
        make_item("p2", "2.0", cost=400, responsible="Ops"),
        make_item("p1", "1.0", cost=1000),
        make_item("launch", "1.10", parent="p1", cost=10, responsible="Marketing"),
        make_item("build", "1.2", parent="p1", cost=300, responsible="Eng"),
        make_item("design", "1.1", parent="p1", cost=200, responsible="Eng"),
        make_item("sketch", "1.1.1", parent="design", cost=50, responsible="Eng"),
    ]
