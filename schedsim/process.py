from dataclasses import dataclass
from enum import Enum

from .errors import IllegalTransitionError


class ProcessState(Enum):
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    BLOCKED_MEMORY = "BLOCKED_MEMORY"
    BLOCKED_IO = "BLOCKED_IO"
    TERMINATED = "TERMINATED"


# BLOCKED_MEMORY is kept in the model but no transition reaches it.
LEGAL_TRANSITIONS = {
    ProcessState.NEW: {ProcessState.READY},
    ProcessState.READY: {ProcessState.RUNNING},
    ProcessState.RUNNING: {ProcessState.READY, ProcessState.BLOCKED_IO, ProcessState.TERMINATED},
    ProcessState.BLOCKED_IO: {ProcessState.READY},
    ProcessState.BLOCKED_MEMORY: set(),
    ProcessState.TERMINATED: set(),
}


class BurstType(Enum):
    CPU = "CPU"
    IO = "IO"


@dataclass
class Burst:
    type: BurstType
    duration: int
    remaining_time: int = None

    def __post_init__(self):
        if self.remaining_time is None:
            self.remaining_time = self.duration

    @property
    def is_completed(self):
        return self.remaining_time <= 0

    def execute(self, units=1):
        executed = min(units, self.remaining_time)
        self.remaining_time -= executed
        return executed

    def __str__(self):
        return f"{self.type.value}({self.duration})"


class Process:
    def __init__(self, pid, arrival_time, bursts, priority=0, required_pages=0):
        self.pid = pid
        self.arrival_time = arrival_time
        self.bursts = [Burst(b.type, b.duration) for b in bursts]
        self.priority = priority
        self.required_pages = required_pages
        self.state = ProcessState.NEW
        self.current_burst_index = 0
        self.loaded_pages = set()
        self.first_execution_time = None
        self.completion_time = None
        self.executed_cpu_time = 0
        self.history = []
        self.state_flow = []

    def __repr__(self):
        return f"Process(pid={self.pid}, state={self.state.value}, arrival={self.arrival_time}, bursts={len(self.bursts)})"

    def transition(self, new_state, now, note=None):
        if new_state not in LEGAL_TRANSITIONS[self.state]:
            raise IllegalTransitionError(
                f"{self.pid}: {self.state.value} -> {new_state.value} is not a legal transition (t={now})"
            )
        self.state = new_state
        if new_state == ProcessState.RUNNING and self.first_execution_time is None:
            self.first_execution_time = now
        elif new_state == ProcessState.TERMINATED:
            self.completion_time = now
        self.state_flow.append({
            'tick': now,
            'state': new_state.value,
            'note': note
        })

    def copy(self):
        return Process(self.pid, self.arrival_time, self.bursts, self.priority, self.required_pages)

    @property
    def current_burst(self):
        if self.current_burst_index < len(self.bursts):
            return self.bursts[self.current_burst_index]
        return None

    @property
    def is_completed(self):
        return self.current_burst_index >= len(self.bursts)

    @property
    def is_next_burst_io(self):
        burst = self.current_burst
        return burst is not None and burst.type == BurstType.IO

    @property
    def current_cpu_burst_time(self):
        burst = self.current_burst
        if burst is not None and burst.type == BurstType.CPU:
            return burst.remaining_time
        return 0

    @property
    def total_cpu_time(self):
        return sum(b.duration for b in self.bursts if b.type == BurstType.CPU)

    @property
    def total_io_time(self):
        return sum(b.duration for b in self.bursts if b.type == BurstType.IO)

    @property
    def remaining_cpu_time(self):
        return sum(
            b.remaining_time
            for b in self.bursts[self.current_burst_index:]
            if b.type == BurstType.CPU
        )

    def advance_burst(self):
        if self.current_burst_index < len(self.bursts):
            self.bursts[self.current_burst_index].remaining_time = 0
            self.current_burst_index += 1

    def reference_string(self):
        # one access per CPU unit, cycling over the process's pages
        pages = max(1, self.required_pages)
        return [i % pages for i in range(self.total_cpu_time)]

    @property
    def turnaround_time(self):
        if self.completion_time is None:
            return None
        return self.completion_time - self.arrival_time

    @property
    def response_time(self):
        if self.first_execution_time is None:
            return None
        return self.first_execution_time - self.arrival_time

    @property
    def waiting_time(self):
        if self.completion_time is None:
            return None
        return self.turnaround_time - self.total_cpu_time - self.total_io_time
