from .config import ReplacementKind, SchedulerKind, SimulationConfig
from .os_sim import OperatingSystem
from .process import Process
from .replacement import create_replacement_policy
from .virtual_memory import MemoryManager


def compare_policies(processes, total_frames=10, quantum=3, max_ticks=100, schedulers=None, replacements=None):
    """Run the same workload, freshly copied, under every scheduler and replacement pair"""
    schedulers = [SchedulerKind.parse(s) for s in (schedulers or list(SchedulerKind))]
    replacements = [ReplacementKind.parse(r) for r in (replacements or list(ReplacementKind))]
    rows = []
    for scheduler in schedulers:
        for replacement in replacements:
            config = SimulationConfig(
                scheduler=scheduler,
                quantum=quantum,
                total_frames=total_frames,
                replacement=replacement,
                max_ticks=max_ticks
            )
            os_sim = OperatingSystem(config, [p.copy() for p in processes])
            outcome = os_sim.run()
            report = os_sim.cpu_scheduler.get_metrics()
            counters = os_sim.get_counters()
            rows.append({
                'scheduler': scheduler.value,
                'replacement': replacement.value,
                'outcome': outcome.value,
                'clock': os_sim.clock,
                'completed': counters['completed_processes'],
                'avg_waiting': report.average_waiting_time(),
                'avg_turnaround': report.average_turnaround_time(),
                'avg_response': report.average_response_time(),
                'page_faults': counters['page_faults'],
                'page_replacements': counters['page_replacements'],
                'idle_ticks': counters['idle_ticks']
            })
    return rows


def best_configuration(rows, metric='avg_waiting'):
    if not rows:
        return None
    best = min(rows, key=lambda row: (row[metric], row['scheduler'], row['replacement']))
    return f"{best['scheduler']} + {best['replacement']}"


def count_page_faults(kind, total_frames, reference_string):
    """Replay a single-process reference string and return (faults, replacements)."""
    process = Process("REF", 0, [], required_pages=max(reference_string, default=-1) + 1)
    memory = MemoryManager(total_frames, create_replacement_policy(kind))
    memory.register_process(process, reference_string)
    for now, page_id in enumerate(reference_string):
        memory.ensure_page_loaded(process, page_id, now)
        memory.access_page(process.pid, page_id, now)
    return memory.page_faults, memory.page_replacements
