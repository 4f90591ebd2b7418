import pytest

from xvbalance.proc import Migration, ProcessTable, ProcState
from xvbalance.trap import TIMER_VECTOR, TimerController, TrapNumber


def make(interval=1000):
    out = []
    table = ProcessTable(ncpu=2, console=out.append)
    init = table.userinit()
    return table, TimerController(table, interval=interval), init, out


def test_only_core_zero_counts_ticks():
    table, timer, _, _ = make()
    timer.tick(1)
    assert timer.ticks == 0
    timer.tick(0)
    timer.tick(0)
    assert timer.ticks == 2


def test_tick_advances_balancer_counter_per_cpu():
    table, timer, _, _ = make()
    assert TIMER_VECTOR == TrapNumber.IRQ0
    timer.tick(1)
    timer.tick(1)
    timer.tick(0)
    assert table.cpus[1].lb_ticks_since_last == 2
    assert table.cpus[0].lb_ticks_since_last == 1


def test_tick_wakes_sleepers_on_channel():
    table, timer, init, _ = make()
    table.sleep(init.pid, timer.channel)
    timer.tick(1)
    assert table[init.pid].state is ProcState.SLEEPING
    timer.tick(0)
    assert table[init.pid].state is ProcState.RUNNABLE


def test_running_process_yields_on_tick():
    table, timer, init, _ = make()
    assert table.schedule(0) == init.pid
    timer.tick(0)
    assert table[init.pid].state is ProcState.RUNNABLE
    assert table.cpus[0].proc is None


def test_killed_running_process_exits_on_tick():
    table, timer, init, _ = make()
    child = table.fork(init.pid)
    assert table[child].core_id == 1
    assert table.schedule(1) == child
    table.kill(child)
    timer.tick(1)
    assert table[child].state is ProcState.ZOMBIE
    assert table.cpus[1].proc is None


def test_load_balancer_runs_on_core_zero_after_interval():
    table, timer, init, out = make(interval=2)
    table.cpus[1].idle_ticks = 100
    assert timer.tick(0) is None
    migration = timer.tick(0)
    assert migration == Migration(init.pid, 0, 1)
    assert table[init.pid].core_id == 1
    assert table.cpus[0].lb_ticks_since_last == 0
    assert "Migrated Process" in "".join(out)


def test_other_cores_reset_counter_without_balancing():
    table, timer, init, out = make(interval=2)
    table.cpus[1].idle_ticks = 100
    timer.tick(1)
    assert timer.tick(1) is None
    assert table.cpus[1].lb_ticks_since_last == 0
    assert table[init.pid].core_id == 0
    assert out == []


def test_invalid_cpu_and_interval_rejected():
    table, timer, _, _ = make()
    with pytest.raises(ValueError):
        timer.tick(2)
    with pytest.raises(ValueError):
        TimerController(table, interval=0)