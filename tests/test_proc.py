import pytest

from xvbalance.proc import (
    KernelPanic,
    Migration,
    ProcessNotFound,
    ProcessTable,
    ProcState,
)


@pytest.fixture
def out():
    return []


@pytest.fixture
def table(out):
    return ProcessTable(ncpu=2, console=out.append)


def test_userinit_creates_runnable_init(table):
    init = table.userinit()
    assert init.pid == 1
    assert init.name == "initcode"
    assert init.state is ProcState.RUNNABLE
    assert init.core_id == 0


def test_cores_assigned_round_robin(table):
    table.userinit()
    a = table.fork(1)
    b = table.fork(1)
    assert [table[1].core_id, table[a].core_id, table[b].core_id] == [0, 1, 0]


def test_fork_copies_parent(table):
    table.userinit()
    child = table.fork(1)
    assert table[child].parent is table[1]
    assert table[child].name == table[1].name
    assert table[child].state is ProcState.RUNNABLE


def test_fork_full_table_raises(out):
    small = ProcessTable(ncpu=1, nproc=2, console=out.append)
    small.userinit()
    small.fork(1)
    with pytest.raises(OSError):
        small.fork(1)


def test_fork_unknown_parent(table):
    with pytest.raises(ProcessNotFound):
        table.fork(42)


def test_invalid_ncpu():
    with pytest.raises(ValueError):
        ProcessTable(ncpu=9)


def test_init_cannot_exit(table):
    table.userinit()
    with pytest.raises(KernelPanic, match="init exiting"):
        table.exit(1)


def test_exit_then_wait_reaps_child(table):
    table.userinit()
    child = table.fork(1)
    table.exit(child)
    assert table[child].state is ProcState.ZOMBIE
    assert table.wait(1) == child
    with pytest.raises(ProcessNotFound):
        table[child]


def test_wait_without_children(table):
    table.userinit()
    with pytest.raises(ChildProcessError):
        table.wait(1)


def test_wait_sleeps_until_child_exits(table):
    table.userinit()
    child = table.fork(1)
    assert table.wait(1) is None
    assert table[1].state is ProcState.SLEEPING
    table.exit(child)
    assert table[1].state is ProcState.RUNNABLE
    assert table.wait(1) == child


def test_orphans_go_to_init(table):
    table.userinit()
    mid = table.fork(1)
    grandchild = table.fork(mid)
    table.exit(mid)
    assert table[grandchild].parent is table[1]


def test_kill_wakes_sleeper(table):
    table.userinit()
    child = table.fork(1)
    table.sleep(child, "chan")
    table.kill(child)
    assert table[child].killed
    assert table[child].state is ProcState.RUNNABLE


def test_kill_unknown(table):
    with pytest.raises(ProcessNotFound):
        table.kill(7)


def test_wakeup_only_matching_channel(table):
    table.userinit()
    a = table.fork(1)
    b = table.fork(1)
    table.sleep(a, "x")
    table.sleep(b, "y")
    assert table.wakeup("x") == [a]
    assert table[b].state is ProcState.SLEEPING


def test_schedule_respects_core(table):
    table.userinit()
    child = table.fork(1)
    assert table.schedule(1) == child
    assert table.cpus[1].proc is table[child]
    assert table[child].state is ProcState.RUNNING


def test_idle_pass_counts_tick(table):
    table.userinit()
    assert table.schedule(1) is None
    assert table.cpus[1].idle_ticks == 1


def test_schedule_round_robin_on_core(table):
    table.userinit()
    table.fork(1)
    third = table.fork(1)
    assert table.schedule(0) == 1
    table.yield_cpu(1)
    assert table.schedule(0) == third
    table.yield_cpu(third)
    assert table.schedule(0) is None
    assert table.schedule(0) == 1


def test_schedule_busy_cpu_panics(table):
    table.userinit()
    table.schedule(0)
    with pytest.raises(KernelPanic):
        table.schedule(0)


def test_yield_requires_running(table):
    table.userinit()
    with pytest.raises(KernelPanic):
        table.yield_cpu(1)


def test_load_balance_migrates_one(table, out):
    table.userinit()
    child = table.fork(1)
    table.cpus[0].idle_ticks = 10
    migration = table.load_balance()
    assert migration == Migration(child, 1, 0)
    assert table[child].core_id == 0
    assert out[0] == f"Load Balancer: Migrated Process {child} to Core 0\n"
    assert out[1] == "Idle time of Core 0 : 10, Idle time of Core 1 : 0\n"


def test_load_balance_balanced(table):
    table.userinit()
    table.fork(1)
    table.cpus[0].idle_ticks = 5
    table.cpus[1].idle_ticks = 5
    assert table.load_balance() is None
    assert table[2].core_id == 1


def test_ps_lists_live_processes(table, out):
    table.userinit()
    text = table.ps()
    lines = text.splitlines()
    assert lines[0] == "PID\tState\t\tName\t\tCore Id"
    assert lines[1] == "1\tRUNNABLE\t\tinitcode\t\t0"
    assert out == [text]


def test_procdump(table):
    table.userinit()
    assert table.procdump() == "1 runble initcode\n"


def test_numcores(table, out):
    assert table.numcores() == 2
    assert out == ["Number of cores : 2"]


def test_ps_shows_zombie_state(table):
    table.userinit()
    child = table.fork(1)
    table.exit(child)
    lines = table.ps().splitlines()
    assert lines[2] == f"{child}\tZOMBIE\t\tinitcode\t\t1"
    assert [s.name for s in ProcState] == [
        "UNUSED", "EMBRYO", "SLEEPING", "RUNNABLE", "RUNNING", "ZOMBIE",
    ]