from dataclasses import dataclass
from enum import Enum

from .errors import ConfigurationError
from .process import Burst, BurstType, Process


class SchedulerKind(Enum):
    FCFS = "FCFS"
    SJF = "SJF"
    SJF_PREEMPTIVE = "SJF_PREEMPTIVE"
    RR = "RR"

    @classmethod
    def parse(cls, name):
        if isinstance(name, cls):
            return name
        key = str(name).strip().upper().replace("-", "_").replace(" ", "_")
        key = SCHEDULER_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(f"Unknown scheduling policy: {name}") from None

    @property
    def uses_quantum(self):
        return self in (SchedulerKind.RR, SchedulerKind.SJF_PREEMPTIVE)


class ReplacementKind(Enum):
    FIFO = "FIFO"
    LRU = "LRU"
    OPTIMAL = "OPTIMAL"

    @classmethod
    def parse(cls, name):
        if isinstance(name, cls):
            return name
        key = str(name).strip().upper()
        key = REPLACEMENT_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ConfigurationError(f"Unknown page replacement policy: {name}") from None


SCHEDULER_ALIASES = {
    'ROUND_ROBIN': 'RR',
    'SRTF': 'SJF_PREEMPTIVE',
    'SJF_P': 'SJF_PREEMPTIVE',
    'FIFO': 'FCFS',
}

REPLACEMENT_ALIASES = {
    'OPT': 'OPTIMAL',
    'BELADY': 'OPTIMAL',
}


@dataclass
class SimulationConfig:
    scheduler: SchedulerKind = SchedulerKind.RR
    quantum: int = 3
    total_frames: int = 10
    replacement: ReplacementKind = ReplacementKind.LRU
    max_ticks: int = 100

    def __post_init__(self):
        self.scheduler = SchedulerKind.parse(self.scheduler)
        self.replacement = ReplacementKind.parse(self.replacement)
        if self.total_frames is None or self.total_frames <= 0:
            raise ConfigurationError(f"Frame count must be positive, got {self.total_frames}")
        if self.max_ticks is None or self.max_ticks <= 0:
            raise ConfigurationError(f"Maximum simulation ticks must be positive, got {self.max_ticks}")
        if self.scheduler.uses_quantum and (self.quantum is None or self.quantum <= 0):
            raise ConfigurationError(f"Quantum must be positive for {self.scheduler.value}, got {self.quantum}")

    def describe(self):
        quantum = self.quantum if self.scheduler.uses_quantum else "N/A"
        return {
            'scheduler': self.scheduler.value,
            'quantum': quantum,
            'frames': self.total_frames,
            'replacement': self.replacement.value,
            'max_ticks': self.max_ticks
        }


def example_processes():
    return [
        Process("P1", 0, [Burst(BurstType.CPU, 4), Burst(BurstType.IO, 3), Burst(BurstType.CPU, 5)], priority=1, required_pages=4),
        Process("P2", 2, [Burst(BurstType.CPU, 6), Burst(BurstType.IO, 2), Burst(BurstType.CPU, 3)], priority=2, required_pages=5),
        Process("P3", 4, [Burst(BurstType.CPU, 8)], priority=3, required_pages=6),
        Process("P4", 1, [
            Burst(BurstType.CPU, 3),
            Burst(BurstType.IO, 2),
            Burst(BurstType.CPU, 2),
            Burst(BurstType.IO, 1),
            Burst(BurstType.CPU, 3)
        ], priority=1, required_pages=3),
    ]
