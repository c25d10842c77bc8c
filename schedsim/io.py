import threading
from dataclasses import dataclass

from .errors import InvariantViolation
from .process import ProcessState


@dataclass
class IOOperation:
    process_id: str
    start_time: int
    end_time: int
    duration: int

    def remaining(self, now):
        return max(0, self.end_time - now)


class IOManager:
    def __init__(self):
        self.active_operations = {}
        self.total_operations = 0
        self.completed_operations = 0
        self.interrupt_log = []
        self._lock = threading.RLock()

    def start_io_operation(self, process, duration, now):
        with self._lock:
            operation = IOOperation(process.pid, now, now + duration, duration)
            process.transition(ProcessState.BLOCKED_IO, now, f"I/O for {duration} ticks")
            self.active_operations[process.pid] = operation
            self.total_operations += 1
            self.interrupt_log.append((now, f"{process.pid} starts I/O until t={operation.end_time}"))
            return operation

    def update_io_operations(self, all_processes, now):
        with self._lock:
            by_pid = {p.pid: p for p in all_processes}
            finished = sorted(
                (op for op in self.active_operations.values() if now >= op.end_time),
                key=lambda op: (op.end_time, op.process_id)
            )
            completed = []
            for operation in finished:
                del self.active_operations[operation.process_id]
                self.completed_operations += 1
                process = by_pid.get(operation.process_id)
                if process is None:
                    raise InvariantViolation(f"I/O completed for unregistered process {operation.process_id}")
                process.transition(ProcessState.READY, now, "I/O completed")
                completed.append(process)
                self.interrupt_log.append((now, f"{process.pid} completes I/O"))
            return completed

    def has_active_io_operation(self, pid):
        with self._lock:
            return pid in self.active_operations

    @property
    def active_count(self):
        with self._lock:
            return len(self.active_operations)

    def get_interrupt_log(self, limit=None):
        with self._lock:
            entries = self.interrupt_log if limit is None else self.interrupt_log[-limit:]
            return [{'tick': tick, 'message': message} for tick, message in entries]

    def get_status(self, now=None, recent=8):
        with self._lock:
            operations = []
            for op in sorted(self.active_operations.values(), key=lambda op: (op.end_time, op.process_id)):
                operations.append({
                    'pid': op.process_id,
                    'start': op.start_time,
                    'end': op.end_time,
                    'remaining': op.remaining(now) if now is not None else None
                })
            return {
                'total': self.total_operations,
                'active': len(self.active_operations),
                'completed': self.completed_operations,
                'operations': operations,
                'interrupts': self.get_interrupt_log(recent)
            }

    def reset(self):
        with self._lock:
            self.active_operations.clear()
            self.total_operations = 0
            self.completed_operations = 0
            self.interrupt_log.clear()
