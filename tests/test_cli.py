import io

from rich.console import Console

from schedsim import SchedulerKind
from schedsim.cli import build_default_cli


def _cli():
    return build_default_cli(console=Console(file=io.StringIO(), width=120))


def _render(cli, result):
    cli.console.print(result)
    return cli.console.file.getvalue()


def test_step_advances_clock():
    cli = _cli()
    cli.execute("step 3")
    assert cli.os.clock == 3


def test_run_reports_outcome():
    cli = _cli()
    output = _render(cli, cli.execute("run"))
    assert "COMPLETED" in output


def test_policy_command_resets_with_new_scheduler():
    cli = _cli()
    cli.execute("step 2")
    cli.execute("policy sjf")
    assert cli.os.config.scheduler == SchedulerKind.SJF
    assert cli.os.clock == 0


def test_invalid_arguments_render_an_error_panel():
    cli = _cli()
    output = _render(cli, cli.execute("policy LOTTERY"))
    assert "ConfigurationError" in output
    assert cli.os.config.scheduler == SchedulerKind.RR
    cli.execute("frames_total 0")
    assert cli.os.config.total_frames == 10


def test_unknown_command():
    cli = _cli()
    assert "Unknown command" in _render(cli, cli.execute("format c:"))


def test_inspection_commands_render():
    cli = _cli()
    cli.execute("run")
    for command in ("help", "ps", "queue", "frames", "io", "gantt", "metrics", "timeline 5",
                    "history P1", "processflow P1", "history P9"):
        result = cli.execute(command)
        assert result is not None
        _render(cli, result)
    assert "P1" in cli.console.file.getvalue()


def test_exit_stops_loop():
    cli = _cli()
    cli.execute("exit")
    assert not cli.running


def test_frames_and_io_show_logs():
    cli = _cli()
    cli.execute("step 6")
    output = _render(cli, cli.execute("frames")) + _render(cli, cli.execute("io"))
    assert "Recent accesses" in output
    assert "FAULT" in output
    assert "starts I/O" in output
