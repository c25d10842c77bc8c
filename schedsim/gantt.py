from dataclasses import dataclass, field
from typing import List, Tuple

IDLE = "IDLE"


@dataclass
class ExecSlice:
    process: str
    start: int
    end: int

    @property
    def duration(self):
        return self.end - self.start


@dataclass
class GanttChart:
    # chronological execution slices, consecutive units of one process merged
    slices: List[ExecSlice] = field(default_factory=list)
    events: List[Tuple[int, str]] = field(default_factory=list)

    def add_execution(self, process_id, start, end):
        if self.slices:
            last = self.slices[-1]
            if last.process == process_id and last.end == start:
                last.end = end
                return
        self.slices.append(ExecSlice(process_id, start, end))

    def add_event(self, tick, description):
        self.events.append((tick, description))

    def execution_intervals(self):
        return [(s.process, s.start, s.end) for s in self.slices if s.process != IDLE]

    def idle_intervals(self):
        return [(s.start, s.end) for s in self.slices if s.process == IDLE]

    def per_process(self):
        result = {}
        for s in self.slices:
            if s.process != IDLE:
                result.setdefault(s.process, []).append((s.start, s.end))
        return result

    @property
    def end_time(self):
        return self.slices[-1].end if self.slices else 0

    def render(self):
        if not self.slices:
            return "Empty Gantt chart"
        bar = ""
        axis = ""
        for s in self.slices:
            width = max(len(s.process) + 2, s.duration * 2)
            bar += "|" + s.process.center(width)
            axis += str(s.start).ljust(width + 1)
        bar += "|"
        axis += str(self.slices[-1].end)
        return bar + "\n" + axis

    def reset(self):
        self.slices.clear()
        self.events.clear()
