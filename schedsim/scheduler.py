import heapq
import logging
import threading
from collections import deque

from .config import SchedulerKind
from .errors import ConfigurationError
from .metrics import PerformanceMetrics
from .process import ProcessState

logger = logging.getLogger(__name__)


class SchedulingPolicy:
    kind = None
    preemptive = False

    def __init__(self, quantum=None):
        self.quantum = quantum if self.preemptive else None
        self.metrics = PerformanceMetrics()
        self.interruptions = 0
        self._lock = threading.RLock()

    def add_process(self, process):
        with self._lock:
            self._enqueue(process)
            self.metrics.record_arrival(process)
            logger.debug("%s: %s queued (ready=%d)", self.describe(), process.pid, len(self))

    def get_next_process(self):
        with self._lock:
            return self._dequeue()

    def on_process_started(self, process, now):
        with self._lock:
            self.metrics.record_first_execution(process, now)

    def record_cpu_execution(self, process, units):
        with self._lock:
            self.metrics.add_cpu_time(process, units)

    def on_process_completion(self, process):
        with self._lock:
            self.metrics.record_completion(process, process.completion_time)

    def on_process_interrupted(self, process):
        with self._lock:
            self.interruptions += 1
            # a BLOCKED_IO process comes back through add_process when its I/O completes
            if self.preemptive and process.state == ProcessState.READY and process.remaining_cpu_time > 0:
                self._reinsert(process)
                return True
            return False

    def _reinsert(self, process):
        self._enqueue(process)

    def is_preemptive(self):
        return self.preemptive

    def get_ready_queue(self):
        with self._lock:
            return self._snapshot()

    def get_metrics(self):
        return self.metrics

    def describe(self):
        return self.kind.value

    def __len__(self):
        with self._lock:
            return len(self._snapshot())

    def _enqueue(self, process):
        raise NotImplementedError

    def _dequeue(self):
        raise NotImplementedError

    def _snapshot(self):
        raise NotImplementedError


class FCFSScheduler(SchedulingPolicy):
    kind = SchedulerKind.FCFS

    def __init__(self, quantum=None):
        super().__init__(quantum)
        self.ready_queue = deque()

    def _enqueue(self, process):
        self.ready_queue.append(process)

    def _dequeue(self):
        if self.ready_queue:
            return self.ready_queue.popleft()
        return None

    def _snapshot(self):
        return list(self.ready_queue)


class SJFScheduler(SchedulingPolicy):
    kind = SchedulerKind.SJF

    def __init__(self, quantum=None, preemptive=False):
        self.preemptive = preemptive
        if preemptive:
            self.kind = SchedulerKind.SJF_PREEMPTIVE
            if quantum is None or quantum <= 0:
                raise ConfigurationError(f"Quantum must be positive for preemptive SJF, got {quantum}")
        super().__init__(quantum)
        self._heap = []

    @staticmethod
    def sort_key(process):
        return (process.current_cpu_burst_time, process.arrival_time, process.pid)

    def _enqueue(self, process):
        # re-adding a queued process replaces its entry
        self._heap = [entry for entry in self._heap if entry[1] is not process]
        heapq.heapify(self._heap)
        heapq.heappush(self._heap, (self.sort_key(process), process))

    def _dequeue(self):
        if self._heap:
            return heapq.heappop(self._heap)[1]
        return None

    def _snapshot(self):
        return [process for _, process in sorted(self._heap, key=lambda entry: entry[0])]


class RoundRobinScheduler(SchedulingPolicy):
    kind = SchedulerKind.RR
    preemptive = True

    def __init__(self, quantum):
        if quantum is None or quantum <= 0:
            raise ConfigurationError(f"Quantum must be positive for Round-Robin, got {quantum}")
        super().__init__(quantum)
        self.ready_queue = deque()
        self.context_switches = 0

    def _enqueue(self, process):
        self.ready_queue.append(process)

    def _reinsert(self, process):
        self.ready_queue.append(process)
        self.context_switches += 1
        logger.debug("RR: %s quantum expired, requeued at tail", process.pid)

    def _dequeue(self):
        if self.ready_queue:
            return self.ready_queue.popleft()
        return None

    def _snapshot(self):
        return list(self.ready_queue)

    def describe(self):
        return f"RR (q={self.quantum})"


_SCHEDULERS = {
    SchedulerKind.FCFS: lambda quantum: FCFSScheduler(),
    SchedulerKind.SJF: lambda quantum: SJFScheduler(),
    SchedulerKind.SJF_PREEMPTIVE: lambda quantum: SJFScheduler(quantum, preemptive=True),
    SchedulerKind.RR: lambda quantum: RoundRobinScheduler(quantum),
}


def create_scheduler(kind, quantum=None):
    kind = SchedulerKind.parse(kind)
    return _SCHEDULERS[kind](quantum)


def list_schedulers():
    return [kind.value for kind in SchedulerKind]
