import shlex

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from .comparison import best_configuration, compare_policies
from .config import SimulationConfig, example_processes, SchedulerKind, ReplacementKind
from .errors import SimulationError
from .os_sim import OperatingSystem
from .process import ProcessState


class CommandLineInterface:
    def __init__(self, os_sim, console=None):
        self.os = os_sim
        self.console = console or Console()
        self.running = True
        self.palette = {
            'primary': 'cyan',
            'success': 'green',
            'warning': 'yellow',
            'danger': 'red',
            'muted': 'bright_black'
        }
        self.category_colors = {
            'PROCESS': 'cyan',
            'MEMORY': 'blue',
            'CPU': 'magenta',
            'IO': 'yellow',
            'SYSTEM': 'white'
        }
        self.state_colors = {
            ProcessState.NEW: "bright_black",
            ProcessState.READY: "green",
            ProcessState.RUNNING: "cyan",
            ProcessState.BLOCKED_IO: "yellow",
            ProcessState.BLOCKED_MEMORY: "yellow",
            ProcessState.TERMINATED: "red"
        }
        self.commands = {
            'help': self._help,
            'run': self._run,
            'step': self._step,
            'ps': self._list_processes,
            'queue': self._ready_queue,
            'frames': self._frames,
            'io': self._io_info,
            'gantt': self._gantt,
            'metrics': self._metrics,
            'timeline': self._timeline,
            'history': self._process_history,
            'processflow': self._process_flow,
            'policy': self._policy,
            'replacement': self._replacement,
            'frames_total': self._frames_total,
            'reset': self._reset,
            'compare': self._compare,
            'demo': self._demo_sequence,
            'clear': self._clear,
            'exit': self._exit
        }

    def _help(self, args):
        sections = {
            "Simulation": [
                "`run` - Run until completion, timeout or stop",
                "`step [n]` - Advance n ticks (default 1)",
                "`reset` - Restart the workload from t=0",
                "`demo` - Guided sequence over every policy",
                "`compare` - All scheduler x replacement combinations"
            ],
            "Inspection": [
                "`ps` - Process table",
                "`queue` - Ready queue snapshot",
                "`frames` - Physical frames",
                "`io` - In-flight I/O operations",
                "`gantt` - Execution chart",
                "`metrics` - Waiting, turnaround and response times",
                "`timeline [n]` - Latest events",
                "`history <pid>` - Events of one process",
                "`processflow <pid>` - State transitions of one process"
            ],
            "Configuration": [
                "`policy <FCFS|SJF|SJF_PREEMPTIVE|RR> [quantum]` - Scheduler",
                "`replacement <FIFO|LRU|OPTIMAL>` - Page replacement",
                "`frames_total <n>` - Physical frame count"
            ],
            "Other": [
                "`clear` - Clear the screen",
                "`help` - This guide",
                "`exit` - Leave the simulator"
            ]
        }
        grid = Table.grid(padding=1)
        grid.add_column(justify="left")
        grid.add_column(justify="left")
        for title, commands in sections.items():
            grid.add_row(f"[bold]{title}[/]", "\n".join(commands))
        return Panel(grid, title="Command Guide", border_style=self.palette['primary'], box=box.ROUNDED)

    def _run(self, args):
        if self.os.finished:
            return self._styled_feedback(f"Simulation already finished: {self.os.outcome.value}", success=False, title="Run")
        outcome = self.os.run()
        return self._styled_feedback(
            f"Outcome: {outcome.value} at t={self.os.clock}",
            success=outcome.value == "COMPLETED",
            title="Run"
        )

    def _step(self, args):
        count = int(args[0]) if args and args[0].isdigit() else 1
        for _ in range(count):
            if self.os.step() is not None:
                break
        info = self.os.get_system_info()
        message = f"t={info['clock']} • running: {info['running_process'] or 'IDLE'} • ready: {info['ready_processes']}"
        if info['outcome']:
            message += f"\nOutcome: {info['outcome']}"
        return self._styled_feedback(message, success=True, title="Step")

    def _list_processes(self, args):
        rows = self.os.get_process_times()
        if not rows:
            return Panel("No processes loaded", title="Processes", style="yellow")
        table = Table(title=f"Processes (t={self.os.clock})", show_lines=True,
                      header_style="bold cyan", box=box.SIMPLE_HEAVY)
        table.add_column("PID", style="bold white")
        table.add_column("State", style="magenta")
        table.add_column("Arrival", justify="right")
        table.add_column("CPU", justify="right")
        table.add_column("I/O", justify="right")
        table.add_column("Pages", justify="right")
        table.add_column("Remaining", justify="right")
        for row in rows:
            process = self.os.find_process(row['pid'])
            color = self.state_colors.get(process.state, 'white')
            table.add_row(
                row['pid'],
                f"[{color}]" + row['state'] + "[/]",
                str(row['arrival']),
                str(row['cpu_time']),
                str(row['io_time']),
                str(process.required_pages),
                str(process.remaining_cpu_time)
            )
        return table

    def _ready_queue(self, args):
        queue = self.os.get_ready_queue()
        if not queue:
            return self._styled_feedback("Ready queue is empty", success=False, title="Ready queue")
        return Panel(" -> ".join(queue), title=f"Ready queue ({self.os.cpu_scheduler.describe()})",
                     border_style=self.palette['success'], box=box.ROUNDED)

    def _frames(self, args):
        status = self.os.memory_manager.get_status()
        table = Table(title=f"Frames ({status['algorithm']})", box=box.ROUNDED)
        table.add_column("Frame", justify="right")
        table.add_column("Process")
        table.add_column("Page", justify="right")
        table.add_column("Loaded", justify="right")
        table.add_column("Last access", justify="right")
        for frame in self.os.get_frames():
            if not frame.occupied:
                table.add_row(str(frame.frame_id), "[bright_black]FREE[/]", "-", "-", "-")
                continue
            table.add_row(str(frame.frame_id), frame.process_id, str(frame.page_id),
                          str(frame.load_time), str(frame.last_access_time))
        usage = 100 * status['frames_used'] / status['frames_total']
        summary = (
            f"Used: {status['frames_used']}/{status['frames_total']}  {self._build_usage_bar(usage)}\n"
            f"Page faults: {status['page_faults']} • Replacements: {status['page_replacements']}"
        )
        accesses = Table(title="Recent accesses", box=box.SIMPLE)
        accesses.add_column("Tick", justify="right")
        accesses.add_column("Page")
        accesses.add_column("Result")
        for entry in status['recent_accesses']:
            result = "[red]FAULT[/]" if entry['fault'] else "[green]HIT[/]"
            accesses.add_row(str(entry['tick']), f"{entry['pid']}-P{entry['page']}", result)
        return Group(table, Panel(summary, title="Memory", border_style="blue", box=box.ROUNDED), accesses)

    def _io_info(self, args):
        status = self.os.io_manager.get_status(self.os.clock)
        table = Table(title="I/O operations", box=box.ROUNDED)
        table.add_column("PID", style="bold")
        table.add_column("Start", justify="right")
        table.add_column("End", justify="right")
        table.add_column("Remaining", justify="right")
        for op in status['operations']:
            table.add_row(op['pid'], str(op['start']), str(op['end']), str(op['remaining']))
        summary = f"Total: {status['total']} • Active: {status['active']} • Completed: {status['completed']}"
        interrupts = Table(title="Interrupts", box=box.SIMPLE)
        interrupts.add_column("Tick", justify="right")
        interrupts.add_column("Event")
        for entry in status['interrupts']:
            interrupts.add_row(str(entry['tick']), entry['message'])
        return Group(table, Panel(summary, border_style="yellow", box=box.ROUNDED), interrupts)

    def _gantt(self, args):
        chart = self.os.gantt
        if not chart.slices:
            return self._styled_feedback("Nothing has executed yet", success=False, title="Gantt")
        table = Table(title="Execution intervals", box=box.SIMPLE_HEAVY)
        table.add_column("Process")
        table.add_column("Start", justify="right")
        table.add_column("End", justify="right")
        table.add_column("Length", justify="right")
        for s in chart.slices:
            label = "[bright_black]IDLE[/]" if s.process == "IDLE" else s.process
            table.add_row(label, str(s.start), str(s.end), str(s.duration))
        return Group(Panel(chart.render(), title="Gantt", border_style=self.palette['primary']), table)

    def _metrics(self, args):
        report = self.os.cpu_scheduler.get_metrics().generate_report()
        counters = self.os.get_counters()
        table = Table(title=f"Performance ({self.os.cpu_scheduler.describe()})", box=box.SIMPLE_HEAVY)
        table.add_column("PID", style="bold")
        table.add_column("Arrival", justify="right")
        table.add_column("First run", justify="right")
        table.add_column("Completion", justify="right")
        table.add_column("Waiting", justify="right")
        table.add_column("Turnaround", justify="right")
        table.add_column("Response", justify="right")
        for row in report['processes']:
            table.add_row(*[
                str(row[key]) if row[key] is not None else "-"
                for key in ('pid', 'arrival', 'first_execution', 'completion', 'waiting', 'turnaround', 'response')
            ])
        summary = (
            f"Completed: {report['completed']} • Avg waiting: {report['avg_waiting']:.2f} • "
            f"Avg turnaround: {report['avg_turnaround']:.2f} • Avg response: {report['avg_response']:.2f}\n"
            f"Page faults: {counters['page_faults']} • Replacements: {counters['page_replacements']} • "
            f"Idle ticks: {counters['idle_ticks']} • Interruptions: {counters['interruptions']}"
        )
        return Group(table, Panel(summary, title="Summary", border_style=self.palette['success'], box=box.ROUNDED))

    def _timeline(self, args):
        limit = int(args[0]) if args and args[0].isdigit() else None
        events = self.os.get_timeline(limit)
        if not events:
            return self._styled_feedback("No events recorded yet", success=False, title="Timeline")
        table = Table(title="Timeline", box=box.SIMPLE_HEAVY, header_style="bold white", row_styles=["dim", "none"])
        table.add_column("#", justify="right")
        table.add_column("Tick", justify="right")
        table.add_column("Type")
        table.add_column("Detail")
        for e in events:
            color = self.category_colors.get(e['category'], 'white')
            table.add_row(str(e['step']), str(e['tick']), f"[{color}]" + e['category'] + "[/]", e['message'])
        return table

    def _process_history(self, args):
        if not args:
            return "Usage: history <pid>"
        pid = args[0]
        history = self.os.get_process_history(pid)
        if history is None:
            return self._styled_feedback(f"Process {pid} not found", success=False, title="History")
        if not history:
            return self._styled_feedback(f"Process {pid} has no events yet", success=False, title="History")
        table = Table(title=f"History of {pid}", box=box.ROUNDED, row_styles=["dim", "none"])
        table.add_column("#", justify="right")
        table.add_column("Tick", justify="right")
        table.add_column("Event")
        for e in history:
            color = self.category_colors.get(e['category'], 'white')
            table.add_row(str(e['step']), str(e['tick']), f"[{color}]" + e['message'] + "[/]")
        return table

    def _process_flow(self, args):
        if not args:
            return "Usage: processflow <pid>"
        pid = args[0]
        flow = self.os.get_process_flow(pid)
        if flow is None:
            return self._styled_feedback(f"Process {pid} not found", success=False, title="Lifecycle")
        if not flow:
            return self._styled_feedback("No transitions recorded yet", success=False, title="Lifecycle")
        table = Table(title=f"Lifecycle of {pid}", box=box.ROUNDED)
        table.add_column("Tick", justify="right")
        table.add_column("State")
        table.add_column("Note")
        for entry in flow:
            table.add_row(str(entry['tick']), entry['state'], entry['note'] or "-")
        return table

    def _policy(self, args):
        if not args:
            return f"Usage: policy <{'|'.join(k.value for k in SchedulerKind)}> [quantum]"
        quantum = int(args[1]) if len(args) > 1 and args[1].isdigit() else self.os.config.quantum
        return self._reconfigure(scheduler=args[0], quantum=quantum)

    def _replacement(self, args):
        if not args:
            return f"Usage: replacement <{'|'.join(k.value for k in ReplacementKind)}>"
        return self._reconfigure(replacement=args[0])

    def _frames_total(self, args):
        if not args or not args[0].lstrip('-').isdigit():
            return "Usage: frames_total <n>"
        return self._reconfigure(total_frames=int(args[0]))

    def _reconfigure(self, **changes):
        current = self.os.config
        values = {
            'scheduler': current.scheduler,
            'quantum': current.quantum,
            'total_frames': current.total_frames,
            'replacement': current.replacement,
            'max_ticks': current.max_ticks
        }
        values.update(changes)
        self.os.reset(SimulationConfig(**values))
        described = ", ".join(f"{k}={v}" for k, v in self.os.config.describe().items())
        return self._styled_feedback(f"Simulation reset with {described}", success=True, title="Configuration")

    def _reset(self, args):
        self.os.reset()
        return self._styled_feedback("Workload restarted at t=0", success=True, title="Reset")

    def _compare(self, args):
        config = self.os.config
        rows = compare_policies(self.os.processes, config.total_frames, config.quantum, config.max_ticks)
        table = Table(title="Policy comparison", box=box.SIMPLE_HEAVY, header_style="bold cyan")
        for column in ("Scheduler", "Replacement", "Outcome", "Avg wait", "Avg turnaround",
                       "Avg response", "Faults", "Replacements"):
            table.add_column(column, justify="right" if column.startswith(("Avg", "Faults", "Repl")) else "left")
        for row in rows:
            table.add_row(
                row['scheduler'],
                row['replacement'],
                row['outcome'],
                f"{row['avg_waiting']:.2f}",
                f"{row['avg_turnaround']:.2f}",
                f"{row['avg_response']:.2f}",
                str(row['page_faults']),
                str(row['page_replacements'])
            )
        best = best_configuration(rows)
        return Group(table, self._styled_feedback(f"Lowest average waiting time: {best}", title="Best"))

    def _demo_sequence(self, args):
        for scheduler in SchedulerKind:
            self._print(self._styled_feedback(f"Policy: {scheduler.value}", success=True, title="Scheduler"))
            self._print(self._reconfigure(scheduler=scheduler))
            self._print(self._run([]))
            self._print(self._gantt([]))
            self._print(self._metrics([]))
        self._print(self._frames([]))
        self._print(self._timeline(["20"]))
        self._print(self._compare([]))
        return self._styled_feedback("Demo finished. Use 'timeline' or 'history' to keep exploring.",
                                     success=True, title="Demo")

    def _clear(self, args):
        self.console.clear()
        return None

    def _exit(self, args):
        self.running = False
        return "Leaving the simulator..."

    def execute(self, command_input):
        parts = shlex.split(command_input)
        if not parts:
            return None
        command = parts[0].lower()
        if command not in self.commands:
            return self._styled_feedback("Unknown command. Type 'help' for the guide.", success=False, title="Error")
        try:
            return self.commands[command](parts[1:])
        except SimulationError as e:
            return self._styled_feedback(str(e), success=False, title=type(e).__name__)
        except ValueError as e:
            return self._styled_feedback(f"Invalid argument: {e}", success=False, title="Error")

    def run(self):
        self._render_banner()
        self._print("Type 'help' to list the available commands\n")
        while self.running:
            try:
                command_input = input("schedsim> ").strip()
            except (KeyboardInterrupt, EOFError):
                self._print("\n\nLeaving the simulator...")
                break
            result = self.execute(command_input)
            if result is not None:
                self._print(result)

    def _build_usage_bar(self, percent, width=30, color="blue"):
        percent = max(0, min(100, float(percent)))
        filled = int((percent / 100) * width)
        return f"[{color}]" + "█" * filled + "[/]" + "·" * (width - filled) + f" {percent:.1f}%"

    def _styled_feedback(self, message, success=True, title=None):
        style = self.palette['success'] if success else self.palette['danger']
        return Panel(message, title=title or ("Success" if success else "Error"), border_style=style, box=box.ROUNDED)

    def _render_banner(self):
        banner_text = (
            "[bold cyan]CPU SCHEDULING & VIRTUAL MEMORY SIMULATOR[/]\n"
            "[bright_black]Processes • Scheduling • Paging • I/O[/]"
        )
        self._print(Panel(banner_text, border_style=self.palette['primary'], padding=(1, 2), box=box.DOUBLE))

    def _print(self, message):
        self.console.print(message)


def build_default_cli(config=None, console=None):
    return CommandLineInterface(OperatingSystem(config or SimulationConfig(), example_processes()), console)
