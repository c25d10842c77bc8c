import argparse
import logging

from schedsim import CommandLineInterface, OperatingSystem, SimulationConfig, example_processes
from schedsim.config import ReplacementKind, SchedulerKind
from schedsim.errors import ConfigurationError


def main():
    parser = argparse.ArgumentParser(description="CPU scheduling and virtual memory simulator")
    parser.add_argument("--scheduler", default=SchedulerKind.RR.value,
                        help="FCFS, SJF, SJF_PREEMPTIVE (SRTF) or RR")
    parser.add_argument("--quantum", type=int, default=3)
    parser.add_argument("--frames", type=int, default=10)
    parser.add_argument("--replacement", default=ReplacementKind.LRU.value, help="FIFO, LRU or OPTIMAL")
    parser.add_argument("--max-ticks", type=int, default=100)
    parser.add_argument("--demo", action="store_true")
    parser.add_argument("--compare", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = SimulationConfig(
            scheduler=args.scheduler,
            quantum=args.quantum,
            total_frames=args.frames,
            replacement=args.replacement,
            max_ticks=args.max_ticks
        )
    except ConfigurationError as e:
        parser.error(str(e))
    os_sim = OperatingSystem(config, example_processes())
    cli = CommandLineInterface(os_sim)
    if args.demo:
        cli._print(cli._demo_sequence([]))
        return
    if args.compare:
        cli._print(cli._compare([]))
        return
    cli.run()


if __name__ == "__main__":
    main()
