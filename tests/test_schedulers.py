import pytest

from osalgo_cli.algorithms import (
    run_algorithm,
    schedule_fifo,
    schedule_lpt,
    schedule_rr,
    schedule_sjf,
    schedule_srt,
)
from osalgo_cli.models import CONTEXT_SWITCH, Policy, Process, SystemMetrics
from osalgo_cli.presets import PROCESS_PRESETS, process_preset


def _procs():
    return [
        Process(1, arrival_time=0, burst_time=5),
        Process(2, arrival_time=1, burst_time=3),
        Process(3, arrival_time=2, burst_time=8),
    ]


def _slices(timeline):
    return [(s.pid, s.start_time, s.end_time) for s in timeline]


def _by_pid(result):
    return {p.pid: p for p in result.processes}


def _run_all(processes):
    return [
        schedule_fifo(processes),
        schedule_sjf(processes),
        schedule_srt(processes),
        schedule_rr(processes, 2),
        schedule_rr(processes, 3, context_switch_time=1),
        schedule_lpt(processes),
    ]


def test_fifo_waits_despite_early_arrival():
    res = schedule_fifo([Process(1, 0, 5), Process(2, 2, 3)])
    assert _slices(res.timeline) == [(1, 0, 5), (2, 5, 8)]
    assert res.system.average_waiting_time == pytest.approx(1.5)


def test_fifo_order():
    res = schedule_fifo(_procs())
    assert [s.pid for s in res.timeline] == [1, 2, 3]
    procs = _by_pid(res)
    assert procs[1].waiting_time == 0
    assert procs[2].waiting_time == 4
    assert procs[3].waiting_time == 6


def test_fifo_sorts_by_arrival_but_reports_input_order():
    res = schedule_fifo([Process(1, 4, 2), Process(2, 0, 3)])
    assert _slices(res.timeline) == [(2, 0, 3), (1, 4, 6)]
    assert [p.pid for p in res.processes] == [1, 2]


def test_idle_gap_is_not_charted():
    res = schedule_fifo([Process(1, 0, 2), Process(2, 5, 3)])
    assert _slices(res.timeline) == [(1, 0, 2), (2, 5, 8)]
    assert res.system.cpu_utilization == pytest.approx(5 / 8 * 100)


def test_clock_starts_at_earliest_arrival():
    res = schedule_sjf([Process(1, 3, 2)])
    assert _slices(res.timeline) == [(1, 3, 5)]
    assert res.processes[0].waiting_time == 0


def test_sjf_picks_shortest_arrived_job():
    res = schedule_sjf(process_preset("simultaneous"))
    assert _slices(res.timeline) == [(3, 0, 2), (2, 2, 6), (4, 6, 11), (1, 11, 19)]


def test_sjf_does_not_preempt_running_job():
    res = schedule_sjf([Process(1, 0, 6), Process(2, 1, 1)])
    assert _slices(res.timeline) == [(1, 0, 6), (2, 6, 7)]


def test_lpt_picks_longest_arrived_job():
    res = schedule_lpt(process_preset("simultaneous"))
    assert _slices(res.timeline) == [(1, 0, 8), (4, 8, 13), (2, 13, 17), (3, 17, 19)]


def test_lpt_tie_goes_to_first_listed():
    res = schedule_lpt([Process(7, 0, 3), Process(4, 0, 3)])
    assert [s.pid for s in res.timeline] == [7, 4]


def test_fifo_equal_arrivals_keep_input_order():
    res = schedule_fifo([Process(9, 0, 3), Process(2, 0, 3), Process(5, 0, 1)])
    assert [s.pid for s in res.timeline] == [9, 2, 5]


def test_sjf_tie_goes_to_first_listed():
    res = schedule_sjf([Process(9, 0, 3), Process(2, 0, 3)])
    assert [s.pid for s in res.timeline] == [9, 2]


def test_srt_equal_remaining_keeps_first_listed():
    # At t=1 both have 3 units left; the first listed keeps the CPU.
    res = schedule_srt([Process(9, 0, 4), Process(2, 1, 3)])
    assert [s.pid for s in res.raw_timeline] == [9, 9, 2]
    assert _slices(res.timeline) == [(9, 0, 4), (2, 4, 7)]


def test_srt_preempts_on_shorter_arrival():
    res = schedule_srt(process_preset("srt-challenge"))
    assert _slices(res.raw_timeline) == [
        (1, 0, 1),
        (2, 1, 2),
        (1, 2, 3),
        (3, 3, 5),
        (3, 5, 7),
        (4, 7, 10),
        (1, 10, 18),
    ]
    assert _slices(res.timeline) == [
        (1, 0, 1),
        (2, 1, 2),
        (1, 2, 3),
        (3, 3, 7),
        (4, 7, 10),
        (1, 10, 18),
    ]

    procs = _by_pid(res)
    assert procs[1].start_time == 0
    assert procs[1].completion_time == 18
    # Interrupted twice: total wait is turnaround - burst, not start - arrival.
    assert procs[1].waiting_time == 8
    assert procs[1].response_time == 0
    assert procs[4].waiting_time == 2
    assert procs[4].response_time == 2


def test_rr_quantum_2():
    res = schedule_rr([Process(1, 0, 5), Process(2, 1, 4)], 2)
    assert _slices(res.timeline) == [(1, 0, 2), (2, 2, 4), (1, 4, 6), (2, 6, 8), (1, 8, 9)]
    procs = _by_pid(res)
    assert procs[1].completion_time == 9
    assert procs[2].completion_time == 8


def test_rr_context_switch_between_different_processes():
    res = schedule_rr([Process(1, 0, 3), Process(2, 0, 2)], 2, context_switch_time=1)
    assert _slices(res.raw_timeline) == [
        (1, 0, 2),
        (CONTEXT_SWITCH, 2, 3),
        (2, 3, 5),
        (CONTEXT_SWITCH, 5, 6),
        (1, 6, 7),
    ]
    procs = _by_pid(res)
    assert procs[1].waiting_time == 4
    assert procs[2].response_time == 3
    # Switching overhead is not useful work.
    assert res.system.cpu_utilization == pytest.approx(5 / 7 * 100)


def test_rr_same_process_pays_no_switch_and_is_merged():
    res = schedule_rr([Process(1, 0, 5)], 2, context_switch_time=3)
    assert _slices(res.raw_timeline) == [(1, 0, 2), (1, 2, 4), (1, 4, 5)]
    assert _slices(res.timeline) == [(1, 0, 5)]


def test_rr_admits_arrivals_before_requeueing():
    res = schedule_rr([Process(1, 0, 4), Process(2, 2, 2), Process(3, 4, 2)], 2)
    assert [s.pid for s in res.timeline] == [1, 2, 1, 3]


def test_rr_non_positive_quantum_returns_empty_result():
    for quantum in (0, -1, None):
        res = schedule_rr(_procs(), quantum)
        assert res.processes == []
        assert res.timeline == []
        assert res.system == SystemMetrics()


def test_rr_rejects_negative_context_switch():
    with pytest.raises(ValueError):
        schedule_rr(_procs(), 2, context_switch_time=-1)


def test_rr_validates_processes_even_with_zero_quantum():
    with pytest.raises(ValueError):
        schedule_rr([Process(1, 0, 0)], 0)


def test_empty_input_gives_zero_metrics():
    for res in _run_all([]):
        assert res.processes == []
        assert res.timeline == []
        assert res.raw_timeline == []
        assert res.system == SystemMetrics()


def test_invalid_burst_time_rejected():
    with pytest.raises(ValueError):
        schedule_sjf([Process(1, 0, 0)])


@pytest.mark.parametrize("preset", sorted(PROCESS_PRESETS))
def test_conservation_and_non_overlap(preset):
    processes = process_preset(preset)
    for res in _run_all(processes):
        assert len(res.processes) == len(processes)
        for p in res.processes:
            assert p.turnaround_time == p.completion_time - p.arrival_time
            assert p.turnaround_time == p.waiting_time + p.burst_time
            assert p.response_time == p.start_time - p.arrival_time
            assert p.start_time >= p.arrival_time

        ordered = sorted(res.timeline, key=lambda s: s.start_time)
        for prev, nxt in zip(ordered, ordered[1:]):
            assert prev.end_time <= nxt.start_time
        assert all(s.end_time > s.start_time for s in res.raw_timeline)

        work = sum(s.duration for s in res.timeline if not s.is_context_switch)
        assert work == sum(p.burst_time for p in processes)


@pytest.mark.parametrize("preset", sorted(PROCESS_PRESETS))
def test_runs_are_repeatable(preset):
    processes = process_preset(preset)
    assert _run_all(processes) == _run_all(processes)
    assert processes == process_preset(preset)


def test_run_algorithm_dispatch():
    res = run_algorithm("RR", [Process(1, 0, 5), Process(2, 1, 4)], quantum=2)
    assert res.algorithm is Policy.RR
    assert res.timeline[-1].end_time == 9
    assert run_algorithm(Policy.LPT, _procs()).algorithm is Policy.LPT


def test_run_algorithm_unknown_name():
    with pytest.raises(ValueError):
        run_algorithm("mlfq", _procs())
