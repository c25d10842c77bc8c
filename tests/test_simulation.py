import threading

import pytest

from schedsim import (
    ConfigurationError,
    OperatingSystem,
    ProcessState,
    SchedulerKind,
    SimulationConfig,
    SimulationOutcome,
    example_processes,
)


def _intervals_by_pid(os_sim):
    result = {}
    for pid, start, end in os_sim.get_execution_intervals():
        result.setdefault(pid, []).append((start, end))
    return result


def test_fcfs_two_processes(make_process, make_os):
    os_sim = make_os([
        make_process("P1", 0, [("CPU", 4)]),
        make_process("P2", 0, [("CPU", 3)]),
    ], scheduler="FCFS", total_frames=10)
    assert os_sim.run() == SimulationOutcome.COMPLETED
    assert os_sim.find_process("P1").completion_time == 4
    assert os_sim.find_process("P2").completion_time == 7
    assert os_sim.get_execution_intervals() == [("P1", 0, 4), ("P2", 4, 7)]
    assert os_sim.cpu_scheduler.get_metrics().average_waiting_time() == 2


def test_single_frame_page_faults(make_process, make_os):
    for kind in ("FIFO", "LRU"):
        os_sim = make_os([make_process("P1", 0, [("CPU", 4)], pages=2)],
                         scheduler="FCFS", total_frames=1, replacement=kind)
        os_sim.run()
        counters = os_sim.get_counters()
        assert counters['page_faults'] == 4
        assert counters['page_replacements'] == 3


def test_identical_runs_are_identical(make_os):
    first = make_os(example_processes(), scheduler="RR", quantum=2, total_frames=6)
    second = make_os(example_processes(), scheduler="RR", quantum=2, total_frames=6)
    first.run()
    second.run()
    assert first.get_execution_intervals() == second.get_execution_intervals()
    assert first.get_counters() == second.get_counters()
    assert [e['message'] for e in first.get_timeline()] == [e['message'] for e in second.get_timeline()]


@pytest.mark.parametrize("scheduler", list(SchedulerKind))
@pytest.mark.parametrize("replacement", ["FIFO", "LRU", "OPTIMAL"])
def test_cpu_time_is_conserved(make_os, scheduler, replacement):
    os_sim = make_os(example_processes(), scheduler=scheduler, quantum=2,
                     total_frames=5, replacement=replacement, max_ticks=500)
    assert os_sim.run() == SimulationOutcome.COMPLETED
    slices = _intervals_by_pid(os_sim)
    for process in os_sim.processes:
        executed = sum(end - start for start, end in slices[process.pid])
        assert executed == process.total_cpu_time == process.executed_cpu_time
        assert process.waiting_time >= 0
        assert process.response_time >= 0


def test_round_robin_bounded_wait(make_process, make_os):
    os_sim = make_os([make_process(f"P{i}", 0, [("CPU", 6)]) for i in range(1, 4)],
                     scheduler="RR", quantum=2)
    os_sim.run()
    for slices in _intervals_by_pid(os_sim).values():
        for (_, end), (start, _) in zip(slices, slices[1:]):
            assert start - end <= (3 - 1) * 2
    assert [os_sim.find_process(f"P{i}").completion_time for i in range(1, 4)] == [14, 16, 18]
    assert os_sim.cpu_scheduler.context_switches == 6


def test_fcfs_starts_in_arrival_order(make_process, make_os):
    os_sim = make_os([
        make_process("C", 2, [("CPU", 2)]),
        make_process("A", 0, [("CPU", 2)]),
        make_process("B", 1, [("CPU", 2)]),
    ], scheduler="FCFS")
    os_sim.run()
    starts = {pid: os_sim.find_process(pid).first_execution_time for pid in "ABC"}
    assert starts == {"A": 0, "B": 2, "C": 4}


def test_sjf_runs_shorter_jobs_first(make_process, make_os):
    os_sim = make_os([
        make_process("A", 0, [("CPU", 5)]),
        make_process("B", 1, [("CPU", 2)]),
        make_process("C", 1, [("CPU", 1)]),
    ], scheduler="SJF")
    os_sim.run()
    assert os_sim.get_execution_intervals() == [("A", 0, 5), ("C", 5, 6), ("B", 6, 8)]


def test_preemptive_sjf_lets_short_job_in(make_process, make_os):
    def workload():
        return [make_process("A", 0, [("CPU", 8)]), make_process("B", 1, [("CPU", 2)])]

    plain = make_os(workload(), scheduler="SJF")
    plain.run()
    preemptive = make_os(workload(), scheduler="SRTF", quantum=1)
    preemptive.run()
    assert plain.find_process("B").completion_time == 10
    assert preemptive.find_process("B").completion_time == 3
    assert preemptive.find_process("A").completion_time == 10


def test_io_blocks_and_cpu_idles(make_process, make_os):
    os_sim = make_os([make_process("P1", 0, [("CPU", 2), ("IO", 3), ("CPU", 1)])], scheduler="FCFS")
    os_sim.run()
    process = os_sim.find_process("P1")
    assert os_sim.get_execution_intervals() == [("P1", 0, 2), ("P1", 5, 6)]
    assert os_sim.gantt.idle_intervals() == [(2, 5)]
    assert os_sim.idle_ticks == 3
    assert process.completion_time == 6
    assert process.waiting_time == 0
    states = [entry['state'] for entry in process.state_flow]
    assert states == ["READY", "RUNNING", "BLOCKED_IO", "READY", "RUNNING", "TERMINATED"]


def test_process_ending_with_io_terminates(make_process, make_os):
    os_sim = make_os([make_process("P1", 0, [("CPU", 1), ("IO", 2)])], scheduler="RR", quantum=2)
    assert os_sim.run() == SimulationOutcome.COMPLETED
    process = os_sim.find_process("P1")
    assert process.state == ProcessState.TERMINATED
    assert process.completion_time == 3


def test_other_processes_run_during_io(make_process, make_os):
    os_sim = make_os([
        make_process("A", 0, [("CPU", 1), ("IO", 2), ("CPU", 1)]),
        make_process("B", 0, [("CPU", 3)]),
    ], scheduler="FCFS")
    os_sim.run()
    assert os_sim.get_execution_intervals() == [("A", 0, 1), ("B", 1, 4), ("A", 4, 5)]
    assert os_sim.idle_ticks == 0


def test_frames_stay_consistent_every_tick(make_os):
    os_sim = make_os(example_processes(), scheduler="RR", quantum=3, total_frames=4, replacement="LRU")
    while os_sim.step() is None:
        frames = os_sim.get_frames()
        pairs = [(f.process_id, f.page_id) for f in frames if f.occupied]
        assert len(pairs) == len(set(pairs)) <= 4
        for pid, pages in os_sim.memory_manager.get_page_table().items():
            required = os_sim.find_process(pid).required_pages
            assert all(0 <= page < required for page in pages)
    assert os_sim.outcome == SimulationOutcome.COMPLETED
    assert os_sim.memory_manager.occupied_frame_count() == 0


def test_timeout_outcome(make_os):
    os_sim = make_os(example_processes(), max_ticks=5)
    assert os_sim.run() == SimulationOutcome.TIMEOUT
    assert os_sim.clock == 5
    assert os_sim.step() == SimulationOutcome.TIMEOUT
    assert os_sim.clock == 5


def test_stop_event_outcome(make_os):
    os_sim = make_os(example_processes())
    stop = threading.Event()
    stop.set()
    assert os_sim.run(stop_event=stop) == SimulationOutcome.STOPPED
    assert os_sim.clock == 0


def test_empty_workload_completes_immediately(make_os):
    os_sim = make_os([])
    assert os_sim.step() == SimulationOutcome.COMPLETED
    assert os_sim.clock == 0


def test_late_arrival_idles_until_admitted(make_process, make_os):
    os_sim = make_os([make_process("P1", 3, [("CPU", 2)])], scheduler="FCFS")
    os_sim.run()
    assert os_sim.idle_ticks == 3
    assert os_sim.find_process("P1").response_time == 0
    assert os_sim.find_process("P1").turnaround_time == 2


def test_duplicate_pids_rejected(make_process):
    with pytest.raises(ConfigurationError):
        OperatingSystem(SimulationConfig(), [
            make_process("P1", 0, [("CPU", 1)]),
            make_process("P1", 1, [("CPU", 1)]),
        ])


def test_timeline_and_history(make_process, make_os):
    os_sim = make_os([make_process("P1", 0, [("CPU", 1)])], scheduler="FCFS")
    os_sim.run()
    timeline = os_sim.get_timeline()
    assert [e['step'] for e in timeline] == list(range(1, len(timeline) + 1))
    assert {e['category'] for e in timeline} <= {"PROCESS", "CPU", "MEMORY", "IO", "SYSTEM"}
    assert os_sim.get_timeline(1)[0]['category'] == "SYSTEM"
    history = os_sim.get_process_history("P1")
    assert all(e['pid'] == "P1" for e in history)
    assert os_sim.get_process_history("NOPE") is None
    assert [f['state'] for f in os_sim.get_process_flow("P1")] == ["READY", "RUNNING", "TERMINATED"]


def test_reset_restarts_workload(make_os):
    os_sim = make_os(example_processes(), scheduler="FCFS")
    os_sim.run()
    os_sim.reset(SimulationConfig(scheduler="RR", quantum=2))
    assert os_sim.clock == 0
    assert os_sim.outcome is None
    assert all(p.state == ProcessState.NEW for p in os_sim.processes)
    assert os_sim.cpu_scheduler.describe() == "RR (q=2)"
    assert os_sim.run() == SimulationOutcome.COMPLETED


def test_report_contents(make_os):
    os_sim = make_os(example_processes())
    os_sim.run()
    report = os_sim.get_report()
    assert report['outcome'] == "COMPLETED"
    assert report['scheduler']['completed'] == 4
    assert [row['pid'] for row in report['scheduler']['processes']] == ["P1", "P4", "P2", "P3"]
    assert report['counters']['completed_processes'] == 4
    assert len(os_sim.get_process_times()) == 4


def test_final_io_finishes_without_waiting_for_cpu(make_process, make_os):
    os_sim = make_os([
        make_process("A", 0, [("CPU", 1), ("IO", 2)]),
        make_process("B", 0, [("CPU", 10)]),
    ], scheduler="FCFS")
    assert os_sim.run() == SimulationOutcome.COMPLETED
    a = os_sim.find_process("A")
    assert a.completion_time == 3
    assert a.waiting_time == 0
    assert [f['state'] for f in a.state_flow][-3:] == ["READY", "RUNNING", "TERMINATED"]
    assert os_sim.find_process("B").completion_time == 11
    assert os_sim.get_execution_intervals() == [("A", 0, 1), ("B", 1, 11)]
    assert os_sim.cpu_scheduler.get_metrics().processes["A"].completion_time == 3


def test_final_io_does_not_reset_running_quantum(make_process, make_os):
    os_sim = make_os([
        make_process("A", 0, [("CPU", 1), ("IO", 2)]),
        make_process("B", 0, [("CPU", 5)]),
    ], scheduler="RR", quantum=3)
    os_sim.run()
    assert os_sim.find_process("A").completion_time == 3
    assert os_sim.find_process("B").completion_time == 6
    assert os_sim.cpu_scheduler.context_switches == 1
