from schedsim import GanttChart
from schedsim.gantt import IDLE


def test_contiguous_units_are_merged():
    chart = GanttChart()
    for tick in range(3):
        chart.add_execution("P1", tick, tick + 1)
    chart.add_execution(IDLE, 3, 4)
    chart.add_execution("P2", 4, 5)
    chart.add_execution("P1", 5, 6)
    assert [(s.process, s.start, s.end) for s in chart.slices] == [
        ("P1", 0, 3), (IDLE, 3, 4), ("P2", 4, 5), ("P1", 5, 6)
    ]
    assert chart.execution_intervals() == [("P1", 0, 3), ("P2", 4, 5), ("P1", 5, 6)]
    assert chart.idle_intervals() == [(3, 4)]
    assert chart.per_process() == {"P1": [(0, 3), (5, 6)], "P2": [(4, 5)]}
    assert chart.end_time == 6


def test_render_and_reset():
    chart = GanttChart()
    assert chart.render() == "Empty Gantt chart"
    chart.add_execution("P1", 0, 2)
    chart.add_event(0, "P1 arrives")
    rendered = chart.render()
    assert "P1" in rendered
    assert rendered.splitlines()[1].rstrip().endswith("2")
    chart.reset()
    assert chart.slices == [] and chart.events == []
