import pytest

from flow_simulation.controller import SimulationController
from flow_simulation.timing import TimingDriver
from helpers import ManualTimerFactory, event, flow, gateway, graph_of, task


@pytest.fixture
def linear_graph():
    """Start -> Task -> End"""
    return graph_of(
        [event("start", "start"), task("task"), event("end", "end")],
        [flow("e1", "start", "task"), flow("e2", "task", "end")],
    )


@pytest.fixture
def parallel_graph():
    """Start -> Split -> {A, B} -> Join -> End"""
    return graph_of(
        [
            event("start", "start"),
            gateway("split", "parallel"),
            task("a"),
            task("b"),
            gateway("join", "parallel"),
            event("end", "end"),
        ],
        [
            flow("e1", "start", "split"),
            flow("e2", "split", "a"),
            flow("e3", "split", "b"),
            flow("e4", "a", "join"),
            flow("e5", "b", "join"),
            flow("e6", "join", "end"),
        ],
    )


@pytest.fixture
def exclusive_graph():
    """Start -> Exclusive(cond1 -> X, default -> Y)"""
    return graph_of(
        [event("start", "start"), gateway("xor", "exclusive"), task("x"), task("y")],
        [
            flow("e1", "start", "xor"),
            flow("cond1", "xor", "x", condition="approved == true"),
            flow("default", "xor", "y", is_default=True),
        ],
    )


@pytest.fixture
def loop_graph():
    """Start -> T1 -> T2 -> T1 ... never ends"""
    return graph_of(
        [event("start", "start"), task("t1"), task("t2")],
        [flow("e1", "start", "t1"), flow("e2", "t1", "t2"), flow("e3", "t2", "t1")],
    )


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def make_controller(timers):
    def _make(graph, **kwargs):
        kwargs.setdefault("seed", 7)
        return SimulationController(graph, driver=TimingDriver(timer_factory=timers), **kwargs)
    return _make
