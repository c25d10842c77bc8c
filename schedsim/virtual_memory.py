import logging
import threading
from dataclasses import dataclass, replace

from .errors import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    frame_id: int
    occupied: bool = False
    process_id: str = None
    page_id: int = None
    load_time: int = None
    last_access_time: int = None

    def load(self, pid, page_id, now):
        self.occupied = True
        self.process_id = pid
        self.page_id = page_id
        self.load_time = now
        self.last_access_time = now

    def unload(self):
        self.occupied = False
        self.process_id = None
        self.page_id = None
        self.load_time = None
        self.last_access_time = None

    def access(self, now):
        self.last_access_time = now

    def __str__(self):
        if not self.occupied:
            return f"Frame[{self.frame_id}]: FREE"
        return f"Frame[{self.frame_id}]: {self.process_id}-P{self.page_id} (load={self.load_time}, access={self.last_access_time})"


class MemoryManager:
    def __init__(self, total_frames, replacement_policy):
        if total_frames is None or total_frames <= 0:
            raise ConfigurationError(f"Frame count must be positive, got {total_frames}")
        self.total_frames = total_frames
        self.frames = [Frame(i) for i in range(total_frames)]
        self.replacement_policy = replacement_policy
        self.page_tables = {}
        self.registry = {}
        self.page_faults = 0
        self.page_replacements = 0
        self.process_page_faults = {}
        self.access_log = []
        self._lock = threading.RLock()

    def load_pages_for_process(self, process, now):
        with self._lock:
            self._register(process)
            if process.required_pages > 0:
                self._ensure_loaded(process, 0, now)
            return True

    def ensure_page_loaded(self, process, page_id, now):
        with self._lock:
            self._register(process)
            return self._ensure_loaded(process, page_id, now)

    def access_page(self, pid, page_id, now):
        with self._lock:
            if pid not in self.registry:
                raise InvariantViolation(f"Page access for unregistered process {pid}")
            frame = self._find_frame(pid, page_id)
            if frame is None:
                raise InvariantViolation(f"Page {pid}-P{page_id} accessed while not resident")
            frame.access(now)
            self.replacement_policy.notify_page_access(frame.frame_id, pid, page_id, now)

    def notify_cpu_usage(self, process, executed_units, now):
        if executed_units <= 0 or process.required_pages <= 0:
            return
        with self._lock:
            executed_so_far = process.total_cpu_time - process.remaining_cpu_time
            first_index = max(0, executed_so_far - executed_units)
            for offset in range(executed_units):
                page_id = (first_index + offset) % process.required_pages
                self._register(process)
                self._ensure_loaded(process, page_id, now)
                self.access_page(process.pid, page_id, now)

    def free_pages_for_process(self, process):
        with self._lock:
            pid = process.pid
            for frame in self.frames:
                if frame.occupied and frame.process_id == pid:
                    logger.debug("Releasing frame %d (%s-P%d)", frame.frame_id, pid, frame.page_id)
                    frame.unload()
                    self.replacement_policy.notify_page_unloaded(frame.frame_id)
            self.page_tables.pop(pid, None)
            self.registry.pop(pid, None)
            self.replacement_policy.unregister_process(pid)
            process.loaded_pages.clear()

    def is_page_loaded(self, pid, page_id):
        with self._lock:
            return page_id in self.page_tables.get(pid, ())

    def set_replacement_policy(self, policy):
        with self._lock:
            policy.reset()
            for process in self.registry.values():
                policy.register_process(process.pid, process.reference_string())
            self.replacement_policy = policy

    def register_process(self, process, reference_string=None):
        with self._lock:
            self._register(process, reference_string)

    def _register(self, process, reference_string=None):
        if process.pid not in self.registry:
            self.registry[process.pid] = process
            self.page_tables.setdefault(process.pid, set())
            if reference_string is None:
                reference_string = process.reference_string()
            self.replacement_policy.register_process(process.pid, list(reference_string))

    def _ensure_loaded(self, process, page_id, now):
        if process.required_pages <= 0:
            return False
        if not 0 <= page_id < process.required_pages:
            raise InvariantViolation(
                f"Page {page_id} outside the address space of {process.pid} ({process.required_pages} pages)"
            )
        if page_id in self.page_tables[process.pid]:
            self.access_log.append((now, process.pid, page_id, False))
            return False
        self._load_page(process, page_id, now)
        return True

    def _load_page(self, process, page_id, now):
        pid = process.pid
        frame_index = self._find_free_frame()
        if frame_index is None:
            frame_index = self.replacement_policy.select_victim_frame(self.frames, now)
            if frame_index is None or not 0 <= frame_index < self.total_frames or not self.frames[frame_index].occupied:
                raise InvariantViolation(
                    f"{self.replacement_policy.name} selected no victim while memory is full (frame={frame_index})"
                )
            self._evict(frame_index)
        frame = self.frames[frame_index]
        frame.load(pid, page_id, now)
        self.page_tables[pid].add(page_id)
        process.loaded_pages.add(page_id)
        self.replacement_policy.notify_page_loaded(frame_index, pid, page_id, now)
        self.page_faults += 1
        self.process_page_faults[pid] = self.process_page_faults.get(pid, 0) + 1
        self.access_log.append((now, pid, page_id, True))
        logger.debug("Page %s-P%d loaded into frame %d (fault #%d)", pid, page_id, frame_index, self.page_faults)

    def _evict(self, frame_index):
        victim = self.frames[frame_index]
        victim_pid, victim_page = victim.process_id, victim.page_id
        logger.debug("Evicting %s-P%d from frame %d", victim_pid, victim_page, frame_index)
        self.page_tables.get(victim_pid, set()).discard(victim_page)
        victim_process = self.registry.get(victim_pid)
        if victim_process is not None:
            victim_process.loaded_pages.discard(victim_page)
        victim.unload()
        self.page_replacements += 1

    def _find_free_frame(self):
        for frame in self.frames:
            if not frame.occupied:
                return frame.frame_id
        return None

    def _find_frame(self, pid, page_id):
        for frame in self.frames:
            if frame.occupied and frame.process_id == pid and frame.page_id == page_id:
                return frame
        return None

    def get_frames(self):
        with self._lock:
            return [replace(frame) for frame in self.frames]

    def get_page_table(self):
        with self._lock:
            return {pid: sorted(pages) for pid, pages in self.page_tables.items()}

    def occupied_frame_count(self):
        with self._lock:
            return sum(1 for frame in self.frames if frame.occupied)

    def get_access_log(self, limit=None):
        with self._lock:
            entries = self.access_log if limit is None else self.access_log[-limit:]
            return [
                {'tick': now, 'pid': pid, 'page': page_id, 'fault': fault}
                for now, pid, page_id, fault in entries
            ]

    def get_status(self, recent=8):
        with self._lock:
            used = self.occupied_frame_count()
            return {
                'algorithm': self.replacement_policy.name,
                'frames_total': self.total_frames,
                'frames_used': used,
                'frames_free': self.total_frames - used,
                'page_faults': self.page_faults,
                'page_replacements': self.page_replacements,
                'process_page_faults': dict(self.process_page_faults),
                'recent_accesses': self.get_access_log(recent)
            }

    def reset(self):
        with self._lock:
            for frame in self.frames:
                frame.unload()
            self.page_tables.clear()
            self.registry.clear()
            self.page_faults = 0
            self.page_replacements = 0
            self.process_page_faults.clear()
            self.access_log.clear()
            self.replacement_policy.reset()
