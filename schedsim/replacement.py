from collections import deque

from .config import ReplacementKind


class PageReplacementPolicy:
    kind = None
    name = None

    def select_victim_frame(self, frames, now):
        raise NotImplementedError

    def notify_page_access(self, frame_index, pid, page_id, now):
        pass

    def notify_page_loaded(self, frame_index, pid, page_id, now):
        pass

    def notify_page_unloaded(self, frame_index):
        pass

    def register_process(self, pid, reference_string):
        pass

    def unregister_process(self, pid):
        pass

    def reset(self):
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"


def _first_free(frames):
    for frame in frames:
        if not frame.occupied:
            return frame.frame_id
    return None


class FIFOReplacement(PageReplacementPolicy):
    kind = ReplacementKind.FIFO
    name = "FIFO (First In, First Out)"

    def __init__(self):
        self.load_order = deque()

    def select_victim_frame(self, frames, now):
        free = _first_free(frames)
        if free is not None:
            return free
        while self.load_order:
            index = self.load_order.popleft()
            # stale entry: frame released or index out of range
            if 0 <= index < len(frames) and frames[index].occupied:
                return index
        occupied = [f for f in frames if f.occupied]
        if not occupied:
            return None
        return min(occupied, key=lambda f: (f.load_time, f.frame_id)).frame_id

    def notify_page_loaded(self, frame_index, pid, page_id, now):
        if frame_index not in self.load_order:
            self.load_order.append(frame_index)

    def notify_page_unloaded(self, frame_index):
        try:
            self.load_order.remove(frame_index)
        except ValueError:
            pass

    def reset(self):
        self.load_order.clear()


class LRUReplacement(PageReplacementPolicy):
    kind = ReplacementKind.LRU
    name = "LRU (Least Recently Used)"

    def __init__(self):
        self.last_access = {}

    def select_victim_frame(self, frames, now):
        free = _first_free(frames)
        if free is not None:
            return free
        victim = None
        oldest = None
        for frame in frames:
            access = self.last_access.get(frame.frame_id, frame.load_time)
            if oldest is None or access < oldest:
                oldest = access
                victim = frame.frame_id
        if victim is not None:
            self.last_access.pop(victim, None)
        return victim

    def notify_page_access(self, frame_index, pid, page_id, now):
        self.last_access[frame_index] = now

    def notify_page_loaded(self, frame_index, pid, page_id, now):
        self.last_access[frame_index] = now

    def notify_page_unloaded(self, frame_index):
        self.last_access.pop(frame_index, None)

    def reset(self):
        self.last_access.clear()


class OptimalReplacement(PageReplacementPolicy):
    """Belady's algorithm over each process's precomputed reference string"""

    kind = ReplacementKind.OPTIMAL
    name = "Optimal (Belady)"

    def __init__(self):
        self.future_accesses = {}
        self.positions = {}

    def register_process(self, pid, reference_string):
        self.future_accesses[pid] = list(reference_string)
        self.positions[pid] = 0

    def unregister_process(self, pid):
        self.future_accesses.pop(pid, None)
        self.positions.pop(pid, None)

    def next_use(self, pid, page_id):
        accesses = self.future_accesses.get(pid)
        if not accesses:
            return None
        for index in range(self.positions.get(pid, 0), len(accesses)):
            if accesses[index] == page_id:
                return index
        return None

    def select_victim_frame(self, frames, now):
        free = _first_free(frames)
        if free is not None:
            return free
        victim = None
        farthest = -1
        for frame in frames:
            use = self.next_use(frame.process_id, frame.page_id)
            if use is None:
                return frame.frame_id
            if use > farthest:
                farthest = use
                victim = frame.frame_id
        return victim

    def notify_page_access(self, frame_index, pid, page_id, now):
        accesses = self.future_accesses.get(pid)
        if accesses is None:
            return
        if self.positions[pid] < len(accesses):
            self.positions[pid] += 1

    def reset(self):
        self.future_accesses.clear()
        self.positions.clear()


_POLICIES = {
    ReplacementKind.FIFO: FIFOReplacement,
    ReplacementKind.LRU: LRUReplacement,
    ReplacementKind.OPTIMAL: OptimalReplacement,
}


def create_replacement_policy(kind):
    kind = ReplacementKind.parse(kind)
    return _POLICIES[kind]()


def list_replacement_policies():
    return [kind.value for kind in ReplacementKind]
