import logging
import threading
from enum import Enum

from .config import SimulationConfig
from .errors import ConfigurationError, InvariantViolation
from .gantt import IDLE, GanttChart
from .io import IOManager
from .process import BurstType, ProcessState
from .replacement import create_replacement_policy
from .scheduler import create_scheduler
from .virtual_memory import MemoryManager

logger = logging.getLogger(__name__)


class SimulationOutcome(Enum):
    COMPLETED = "COMPLETED"
    TIMEOUT = "TIMEOUT"
    STOPPED = "STOPPED"


class OperatingSystem:
    def __init__(self, config=None, processes=()):
        self.config = config or SimulationConfig()
        self._initial = [p.copy() for p in processes]
        self._lock = threading.RLock()
        self._build()

    def _build(self):
        config = self.config
        self.cpu_scheduler = create_scheduler(config.scheduler, config.quantum)
        self.memory_manager = MemoryManager(config.total_frames, create_replacement_policy(config.replacement))
        self.io_manager = IOManager()
        self.gantt = GanttChart()
        self.processes = []
        self.clock = 0
        self.running_process = None
        self.quantum_remaining = None
        self.idle_ticks = 0
        self.outcome = None
        self.timeline = []
        self.timeline_step = 1
        seen = set()
        for process in self._initial:
            if process.pid in seen:
                raise ConfigurationError(f"Duplicate process id {process.pid}")
            seen.add(process.pid)
            self.processes.append(process.copy())
        self.log_event("SYSTEM", "Simulation configured", metadata=config.describe())

    def reset(self, config=None):
        with self._lock:
            if config is not None:
                self.config = config
            self._build()

    def step(self):
        with self._lock:
            if self.outcome is not None:
                return self.outcome
            if self._all_terminated():
                return self._finish(SimulationOutcome.COMPLETED)
            now = self.clock
            self._admit_arrivals(now)
            self._drain_io(now)
            if self.running_process is None:
                self._dispatch(now)
            if self.running_process is not None:
                self._execute(now)
            else:
                self.idle_ticks += 1
                self.gantt.add_execution(IDLE, now, now + 1)
            self.clock = now + 1
            if self._all_terminated():
                return self._finish(SimulationOutcome.COMPLETED)
            if self.clock >= self.config.max_ticks:
                return self._finish(SimulationOutcome.TIMEOUT)
            return None

    def run(self, stop_event=None):
        while self.outcome is None:
            if stop_event is not None and stop_event.is_set():
                with self._lock:
                    self._finish(SimulationOutcome.STOPPED)
                break
            self.step()
        return self.outcome

    def stop(self):
        with self._lock:
            if self.outcome is None:
                self._finish(SimulationOutcome.STOPPED)

    @property
    def finished(self):
        return self.outcome is not None

    def _finish(self, outcome):
        self.outcome = outcome
        self.log_event("SYSTEM", f"Simulation {outcome.value.lower()} at t={self.clock}")
        logger.info("Simulation %s at t=%d", outcome.value, self.clock)
        return outcome

    def _all_terminated(self):
        return all(p.state == ProcessState.TERMINATED for p in self.processes)

    def _admit_arrivals(self, now):
        for process in self.processes:
            if process.state == ProcessState.NEW and process.arrival_time == now:
                process.transition(ProcessState.READY, now, "Arrived")
                self.cpu_scheduler.add_process(process)
                self.gantt.add_event(now, f"{process.pid} arrives")
                self.log_event("PROCESS", f"{process.pid} arrives", process=process)

    def _drain_io(self, now):
        for process in self.io_manager.update_io_operations(self.processes, now):
            burst = process.current_burst
            if burst is None or burst.type != BurstType.IO:
                raise InvariantViolation(f"{process.pid} left I/O without an active I/O burst")
            process.advance_burst()
            if process.is_completed:
                self.log_event("IO", f"{process.pid} completed its final I/O", process=process)
                self._retire_without_cpu(process, now)
                continue
            self.cpu_scheduler.add_process(process)
            self.log_event("IO", f"{process.pid} completed I/O, back to READY", process=process)

    def _retire_without_cpu(self, process, now):
        # ends at its I/O deadline without queueing for the CPU
        first_run = process.first_execution_time is None
        process.transition(ProcessState.RUNNING, now, "Final I/O finished")
        if first_run:
            self.cpu_scheduler.on_process_started(process, now)
        self._terminate(process, now)

    def _dispatch(self, now):
        while self.running_process is None:
            process = self.cpu_scheduler.get_next_process()
            if process is None:
                return
            self.memory_manager.load_pages_for_process(process, now)
            first_run = process.first_execution_time is None
            process.transition(ProcessState.RUNNING, now, "Dispatched")
            if first_run:
                self.cpu_scheduler.on_process_started(process, now)
            self.quantum_remaining = self.cpu_scheduler.quantum if self.cpu_scheduler.is_preemptive() else None
            self.log_event("CPU", f"CPU assigned to {process.pid}", process=process,
                           metadata={'remaining_cpu': process.remaining_cpu_time})
            burst = process.current_burst
            if burst is None:
                self._terminate(process, now)
            elif burst.type == BurstType.IO:
                self._block_for_io(process, now)
            else:
                self.running_process = process

    def _execute(self, now):
        process = self.running_process
        burst = process.current_burst
        executed = burst.execute(1)
        process.executed_cpu_time += executed
        if self.quantum_remaining is not None:
            self.quantum_remaining -= executed
        self.cpu_scheduler.record_cpu_execution(process, executed)
        faults = self.memory_manager.page_faults
        self.memory_manager.notify_cpu_usage(process, executed, now)
        if self.memory_manager.page_faults > faults:
            self.log_event("MEMORY", f"Page fault for {process.pid}", process=process,
                           metadata={'page_faults': self.memory_manager.page_faults})
        self.gantt.add_execution(process.pid, now, now + executed)
        end = now + executed
        if burst.is_completed:
            process.advance_burst()
            if process.is_completed:
                self._terminate(process, end)
            elif process.is_next_burst_io:
                self._block_for_io(process, end)
            elif self._quantum_expired():
                self._preempt(process, end)
        elif self._quantum_expired():
            self._preempt(process, end)

    def _quantum_expired(self):
        return (
            self.cpu_scheduler.is_preemptive()
            and self.quantum_remaining is not None
            and self.quantum_remaining <= 0
        )

    def _terminate(self, process, when):
        process.transition(ProcessState.TERMINATED, when, "All bursts finished")
        self.memory_manager.free_pages_for_process(process)
        self.cpu_scheduler.on_process_completion(process)
        self.gantt.add_event(when, f"{process.pid} terminated")
        self.log_event("PROCESS", f"{process.pid} terminated", process=process,
                       metadata={'turnaround': process.turnaround_time})
        self._release_cpu(process)

    def _block_for_io(self, process, when):
        burst = process.current_burst
        operation = self.io_manager.start_io_operation(process, burst.duration, when)
        self.cpu_scheduler.on_process_interrupted(process)
        self.gantt.add_event(when, f"{process.pid} -> I/O")
        self.log_event("IO", f"{process.pid} blocked for I/O until t={operation.end_time}", process=process,
                       metadata={'duration': burst.duration})
        self._release_cpu(process)

    def _preempt(self, process, when):
        process.transition(ProcessState.READY, when, "Quantum expired")
        if not self.cpu_scheduler.on_process_interrupted(process):
            self.cpu_scheduler.add_process(process)
        self.gantt.add_event(when, f"{process.pid} -> quantum")
        self.log_event("CPU", f"{process.pid} preempted, quantum expired", process=process)
        self._release_cpu(process)

    def _release_cpu(self, process):
        if self.running_process is process:
            self.running_process = None
            self.quantum_remaining = None

    def log_event(self, category, message, process=None, metadata=None):
        event = {
            'step': self.timeline_step,
            'tick': self.clock,
            'category': category.upper(),
            'message': message,
            'metadata': metadata or {},
            'pid': process.pid if process else None
        }
        self.timeline_step += 1
        self.timeline.append(event)
        if process:
            process.history.append(event)

    def get_timeline(self, limit=None):
        with self._lock:
            if limit is None or limit >= len(self.timeline):
                return list(self.timeline)
            return self.timeline[-limit:]

    def find_process(self, pid):
        for process in self.processes:
            if process.pid == pid:
                return process
        return None

    def get_process_history(self, pid):
        process = self.find_process(pid)
        if not process:
            return None
        return list(process.history)

    def get_process_flow(self, pid):
        process = self.find_process(pid)
        if not process:
            return None
        return list(process.state_flow)

    def get_ready_queue(self):
        return [p.pid for p in self.cpu_scheduler.get_ready_queue()]

    def get_frames(self):
        return self.memory_manager.get_frames()

    def get_execution_intervals(self):
        with self._lock:
            return self.gantt.execution_intervals()

    def get_counters(self):
        with self._lock:
            memory = self.memory_manager.get_status()
            io = self.io_manager.get_status(self.clock)
            return {
                'clock': self.clock,
                'idle_ticks': self.idle_ticks,
                'page_faults': memory['page_faults'],
                'page_replacements': memory['page_replacements'],
                'process_page_faults': memory['process_page_faults'],
                'io_total': io['total'],
                'io_active': io['active'],
                'io_completed': io['completed'],
                'interruptions': self.cpu_scheduler.interruptions,
                'context_switches': getattr(self.cpu_scheduler, 'context_switches', 0),
                'completed_processes': sum(1 for p in self.processes if p.state == ProcessState.TERMINATED)
            }

    def get_process_times(self):
        with self._lock:
            rows = []
            for p in self.processes:
                rows.append({
                    'pid': p.pid,
                    'state': p.state.value,
                    'arrival': p.arrival_time,
                    'first_execution': p.first_execution_time,
                    'completion': p.completion_time,
                    'cpu_time': p.total_cpu_time,
                    'io_time': p.total_io_time,
                    'turnaround': p.turnaround_time,
                    'waiting': p.waiting_time,
                    'response': p.response_time
                })
            return rows

    def get_report(self):
        with self._lock:
            return {
                'config': self.config.describe(),
                'outcome': self.outcome.value if self.outcome else None,
                'clock': self.clock,
                'scheduler': self.cpu_scheduler.get_metrics().generate_report(),
                'counters': self.get_counters(),
                'intervals': self.get_execution_intervals()
            }

    def get_system_info(self):
        with self._lock:
            running = self.running_process
            return {
                'clock': self.clock,
                'max_ticks': self.config.max_ticks,
                'scheduler': self.cpu_scheduler.describe(),
                'replacement': self.memory_manager.replacement_policy.name,
                'total_processes': len(self.processes),
                'running_process': running.pid if running else None,
                'ready_processes': len(self.cpu_scheduler),
                'memory': self.memory_manager.get_status(),
                'outcome': self.outcome.value if self.outcome else None
            }
