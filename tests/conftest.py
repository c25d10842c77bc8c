import pytest

from schedsim import Burst, BurstType, OperatingSystem, Process, SimulationConfig


def build_process(pid, arrival, bursts, pages=0, priority=0):
    return Process(
        pid,
        arrival,
        [Burst(BurstType[kind], duration) for kind, duration in bursts],
        priority=priority,
        required_pages=pages
    )


@pytest.fixture
def make_process():
    return build_process


@pytest.fixture
def make_os():
    def _make(processes, **config):
        return OperatingSystem(SimulationConfig(**config), processes)
    return _make
