import logging
import threading
import time

logger = logging.getLogger(__name__)


class SimulationRunner(threading.Thread):
    def __init__(self, os_sim, delay=0.0, on_tick=None):
        super().__init__(name="schedsim-runner", daemon=True)
        self.os = os_sim
        self.delay = delay
        self.on_tick = on_tick
        self.paused = False
        self._pause_event = threading.Event()
        self._pause_event.set()
        self._stop_event = threading.Event()
        self.error = None

    def run(self):
        logger.debug("Runner started (delay=%.3fs)", self.delay)
        try:
            while not self.os.finished:
                self._pause_event.wait()
                if self._stop_event.is_set():
                    self.os.stop()
                    break
                self.os.step()
                if self.on_tick:
                    self.on_tick(self.os)
                if self.delay:
                    # wakes early on stop
                    self._stop_event.wait(self.delay)
        except Exception as exc:
            self.error = exc
            logger.error("Runner aborted at t=%d: %s", self.os.clock, exc)
            raise
        logger.debug("Runner finished: %s", self.os.outcome)

    def pause(self):
        self.paused = True
        self._pause_event.clear()

    def resume(self):
        self.paused = False
        self._pause_event.set()

    def stop(self):
        self._stop_event.set()
        self.resume()

    @property
    def stopped(self):
        return self._stop_event.is_set()

    def wait(self, timeout=None):
        started = time.monotonic()
        self.join(timeout)
        logger.debug("Waited %.3fs for runner", time.monotonic() - started)
        return self.os.outcome
