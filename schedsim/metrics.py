from dataclasses import dataclass


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    total_io_time: int
    first_execution_time: int = None
    completion_time: int = None
    executed_cpu_time: int = 0

    @property
    def turnaround_time(self):
        if self.completion_time is None:
            return None
        return self.completion_time - self.arrival_time

    @property
    def waiting_time(self):
        if self.completion_time is None:
            return None
        return self.turnaround_time - self.executed_cpu_time - self.total_io_time

    @property
    def response_time(self):
        if self.first_execution_time is None:
            return None
        return self.first_execution_time - self.arrival_time


class PerformanceMetrics:
    """Per-process waiting, turnaround and response bookkeeping of one scheduler."""

    def __init__(self):
        self.processes = {}

    def record_arrival(self, process):
        if process.pid not in self.processes:
            self.processes[process.pid] = ProcessMetrics(
                pid=process.pid,
                arrival_time=process.arrival_time,
                total_io_time=process.total_io_time
            )

    def record_first_execution(self, process, now):
        metrics = self.processes.get(process.pid)
        if metrics is not None and metrics.first_execution_time is None:
            metrics.first_execution_time = now

    def record_completion(self, process, now):
        metrics = self.processes.get(process.pid)
        if metrics is not None:
            metrics.completion_time = now

    def add_cpu_time(self, process, units):
        metrics = self.processes.get(process.pid)
        if metrics is not None:
            metrics.executed_cpu_time += units

    def executed_cpu_time(self, pid):
        metrics = self.processes.get(pid)
        return metrics.executed_cpu_time if metrics else 0

    def completed(self):
        return [m for m in self.processes.values() if m.completion_time is not None]

    def completed_count(self):
        return len(self.completed())

    def _average(self, values):
        values = [v for v in values if v is not None]
        if not values:
            return 0.0
        return sum(values) / len(values)

    def average_waiting_time(self):
        return self._average(m.waiting_time for m in self.completed())

    def average_turnaround_time(self):
        return self._average(m.turnaround_time for m in self.completed())

    def average_response_time(self):
        return self._average(m.response_time for m in self.processes.values())

    def generate_report(self):
        rows = []
        for m in sorted(self.processes.values(), key=lambda m: (m.arrival_time, m.pid)):
            rows.append({
                'pid': m.pid,
                'arrival': m.arrival_time,
                'first_execution': m.first_execution_time,
                'completion': m.completion_time,
                'cpu_time': m.executed_cpu_time,
                'waiting': m.waiting_time,
                'turnaround': m.turnaround_time,
                'response': m.response_time
            })
        return {
            'completed': self.completed_count(),
            'avg_waiting': self.average_waiting_time(),
            'avg_turnaround': self.average_turnaround_time(),
            'avg_response': self.average_response_time(),
            'processes': rows
        }

    def reset(self):
        self.processes.clear()
