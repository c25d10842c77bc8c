from .errors import SimulationError, ConfigurationError, InvariantViolation, IllegalTransitionError
from .process import ProcessState, BurstType, Burst, Process
from .config import SchedulerKind, ReplacementKind, SimulationConfig, example_processes
from .metrics import ProcessMetrics, PerformanceMetrics
from .gantt import GanttChart, ExecSlice
from .scheduler import SchedulingPolicy, FCFSScheduler, SJFScheduler, RoundRobinScheduler, create_scheduler
from .replacement import (
    PageReplacementPolicy,
    FIFOReplacement,
    LRUReplacement,
    OptimalReplacement,
    create_replacement_policy
)
from .virtual_memory import Frame, MemoryManager
from .io import IOOperation, IOManager
from .os_sim import SimulationOutcome, OperatingSystem
from .runner import SimulationRunner
from .comparison import compare_policies, count_page_faults
from .cli import CommandLineInterface
