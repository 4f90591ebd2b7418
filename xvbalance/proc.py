"""Process table with per-core run queues and an idle-time load balancer.

Every process is pinned to a core when it is created (round robin over the
available cores). A core's scheduler only runs processes pinned to it, and
the load balancer moves one runnable process from the busiest core (the one
with the fewest idle ticks) to the idlest core when the two differ by more
than a fifth of the average idle time.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Hashable, Iterator, List, Optional

from .fmt import format_message

NPROC = 64  # maximum number of processes
NCPU = 8  # maximum number of CPUs
NAME_LENGTH = 16  # size of a process name buffer, terminator included
THRESHOLD_PERCENTAGE = 0.2
_INT_MIN = -2147483648
_INT_MAX = 2147483647


class KernelPanic(RuntimeError):
    """Raised where the kernel would halt with a panic."""


class ProcessNotFound(LookupError):
    """Raised when no live process has the requested pid."""


class ProcState(IntEnum):
    """Lifecycle states of a process-table slot."""

    UNUSED = 0
    EMBRYO = 1
    SLEEPING = 2
    RUNNABLE = 3
    RUNNING = 4
    ZOMBIE = 5


_DUMP_NAMES = {
    ProcState.UNUSED: "unused",
    ProcState.EMBRYO: "embryo",
    ProcState.SLEEPING: "sleep ",
    ProcState.RUNNABLE: "runble",
    ProcState.RUNNING: "run   ",
    ProcState.ZOMBIE: "zombie",
}


@dataclass(eq=False)
class Proc:
    """One slot of the process table."""

    slot: int
    pid: int = 0
    state: ProcState = ProcState.UNUSED
    parent: Optional["Proc"] = None
    name: str = ""
    killed: bool = False
    chan: Optional[Hashable] = None
    core_id: int = 0
    sz: int = 0

    def _clear(self) -> None:
        self.pid = 0
        self.parent = None
        self.name = ""
        self.killed = False
        self.chan = None
        self.sz = 0
        self.state = ProcState.UNUSED


@dataclass
class Cpu:
    """Per-core scheduling state."""

    id: int
    proc: Optional[Proc] = None
    idle_ticks: int = 0
    lb_ticks_since_last: int = 0
    _cursor: int = field(default=0, repr=False)


@dataclass(frozen=True)
class Migration:
    """A process moved from one core to another by the load balancer."""

    pid: int
    from_core: int
    to_core: int


class ProcessTable:
    """The kernel's process table together with its CPUs."""

    def __init__(
        self,
        ncpu: int = 2,
        nproc: int = NPROC,
        console: Optional[Callable[[str], object]] = None,
    ) -> None:
        if not 1 <= ncpu <= NCPU:
            raise ValueError(f"ncpu must lie between 1 and {NCPU}")
        if nproc < 1:
            raise ValueError("nproc must be positive")
        self.ncpu = ncpu
        self.cpus: List[Cpu] = [Cpu(i) for i in range(ncpu)]
        self._procs: List[Proc] = [Proc(i) for i in range(nproc)]
        self._lock = threading.RLock()
        self._core_lock = threading.Lock()
        self._next_pid = 1
        self._next_core = 0
        self._initproc: Optional[Proc] = None
        self._console = console if console is not None else sys.stdout.write

    # -- lookup -----------------------------------------------------------

    def __getitem__(self, pid: int) -> Proc:
        return self._find(pid)

    def __iter__(self) -> Iterator[Proc]:
        with self._lock:
            live = [p for p in self._procs if p.state is not ProcState.UNUSED]
        return iter(live)

    def _find(self, pid: int) -> Proc:
        if pid > 0:
            for p in self._procs:
                if p.pid == pid and p.state is not ProcState.UNUSED:
                    return p
        raise ProcessNotFound(pid)

    def _cpu(self, cpu_id: int) -> Cpu:
        if not 0 <= cpu_id < self.ncpu:
            raise ValueError(f"no cpu {cpu_id}")
        return self.cpus[cpu_id]

    def _print(self, fmt: str, *args: object) -> str:
        text = format_message(fmt, *args)
        self._console(text)
        return text

    # -- creation and teardown -------------------------------------------

    def _allocproc(self) -> Optional[Proc]:
        with self._lock:
            for p in self._procs:
                if p.state is ProcState.UNUSED:
                    break
            else:
                return None
            p.state = ProcState.EMBRYO
            p.pid = self._next_pid
            self._next_pid += 1
        with self._core_lock:
            p.core_id = self._next_core
            self._next_core = (self._next_core + 1) % self.ncpu
        return p

    def userinit(self) -> Proc:
        """Create the first user process and make it runnable."""
        p = self._allocproc()
        if p is None:
            raise KernelPanic("userinit: out of process slots")
        self._initproc = p
        p.sz = 4096
        p.name = "initcode"
        with self._lock:
            p.state = ProcState.RUNNABLE
        return p

    def fork(self, parent_pid: int) -> int:
        """Create a runnable copy of ``parent_pid`` and return the child's pid."""
        with self._lock:
            parent = self._find(parent_pid)
        child = self._allocproc()
        if child is None:
            raise OSError(11, "fork: process table full")
        child.sz = parent.sz
        child.parent = parent
        child.name = parent.name[: NAME_LENGTH - 1]
        with self._lock:
            child.state = ProcState.RUNNABLE
        return child.pid

    def _release_cpu(self, p: Proc) -> None:
        for cpu in self.cpus:
            if cpu.proc is p:
                cpu.proc = None

    def _wakeup1(self, chan: Hashable) -> List[int]:
        woken = []
        for p in self._procs:
            if p.state is ProcState.SLEEPING and p.chan is chan:
                p.state = ProcState.RUNNABLE
                p.chan = None
                woken.append(p.pid)
        return woken

    def exit(self, pid: int) -> None:
        """Turn ``pid`` into a zombie, waking its parent and handing its children to init."""
        with self._lock:
            p = self._find(pid)
            if p is self._initproc:
                raise KernelPanic("init exiting")
            if p.state is ProcState.ZOMBIE:
                raise KernelPanic("zombie exit")
            if p.parent is not None:
                self._wakeup1(p.parent)
            for child in self._procs:
                if child.parent is p:
                    child.parent = self._initproc
                    if child.state is ProcState.ZOMBIE and self._initproc is not None:
                        self._wakeup1(self._initproc)
            p.state = ProcState.ZOMBIE
            self._release_cpu(p)

    def wait(self, pid: int) -> Optional[int]:
        """Reap one exited child of ``pid`` and return its pid.

        When children exist but none has exited, the caller is put to sleep
        until a child exits and None is returned. Raises ChildProcessError if
        there are no children or the caller has been killed.
        """
        with self._lock:
            parent = self._find(pid)
            havekids = False
            for p in self._procs:
                if p.parent is not parent or p.state is ProcState.UNUSED:
                    continue
                havekids = True
                if p.state is ProcState.ZOMBIE:
                    child_pid = p.pid
                    p._clear()
                    return child_pid
            if not havekids or parent.killed:
                raise ChildProcessError(f"process {pid} has no children to wait for")
            self._sleep(parent, parent)
            return None

    def kill(self, pid: int) -> None:
        """Mark ``pid`` killed, waking it if it sleeps."""
        with self._lock:
            p = self._find(pid)
            p.killed = True
            if p.state is ProcState.SLEEPING:
                p.state = ProcState.RUNNABLE
                p.chan = None

    # -- sleeping and waking ---------------------------------------------

    def _sleep(self, p: Proc, chan: Hashable) -> None:
        p.chan = chan
        p.state = ProcState.SLEEPING
        self._release_cpu(p)

    def sleep(self, pid: int, chan: Hashable) -> None:
        """Put ``pid`` to sleep on ``chan``, giving up its CPU."""
        with self._lock:
            try:
                p = self._find(pid)
            except ProcessNotFound:
                raise KernelPanic("sleep") from None
            if p.state is ProcState.ZOMBIE:
                raise KernelPanic("sleep")
            self._sleep(p, chan)

    def wakeup(self, chan: Hashable) -> List[int]:
        """Make every process sleeping on ``chan`` runnable; return their pids."""
        with self._lock:
            return self._wakeup1(chan)

    # -- scheduling -------------------------------------------------------

    def schedule(self, cpu_id: int) -> Optional[int]:
        """Advance ``cpu_id``'s scheduling pass by one step.

        The pass walks the table from where it last stopped and starts the
        next runnable process pinned to this core, returning its pid. When
        the walk reaches the end of the table the pass is complete: the
        core's idle tick count grows by one, the next pass starts from the
        top, and None is returned.
        """
        cpu = self._cpu(cpu_id)
        with self._lock:
            if cpu.proc is not None:
                raise KernelPanic("scheduler: cpu already running a process")
            for p in self._procs[cpu._cursor:]:
                if p.state is not ProcState.RUNNABLE or p.core_id != cpu.id:
                    continue
                cpu._cursor = p.slot + 1
                cpu.proc = p
                p.state = ProcState.RUNNING
                return p.pid
            cpu._cursor = 0
            cpu.idle_ticks += 1
            return None

    def yield_cpu(self, pid: int) -> None:
        """Make the running process ``pid`` give up its CPU for one round."""
        with self._lock:
            p = self._find(pid)
            if p.state is not ProcState.RUNNING:
                raise KernelPanic("sched: process not running")
            p.state = ProcState.RUNNABLE
            self._release_cpu(p)

    def load_balance(self) -> Optional[Migration]:
        """Move one runnable process from the busiest to the idlest core if needed."""
        total_idle = sum(cpu.idle_ticks for cpu in self.cpus)
        threshold = total_idle / self.ncpu * THRESHOLD_PERCENTAGE

        overloaded = underloaded = -1
        max_idle, min_idle = _INT_MIN, _INT_MAX
        for cpu in self.cpus:
            if cpu.idle_ticks < min_idle:
                min_idle = cpu.idle_ticks
                overloaded = cpu.id
            if cpu.idle_ticks > max_idle:
                max_idle = cpu.idle_ticks
                underloaded = cpu.id

        if overloaded == -1 or underloaded == -1 or max_idle - min_idle <= threshold:
            return None
        with self._lock:
            for p in self._procs:
                if p.state is ProcState.RUNNABLE and p.core_id == overloaded:
                    p.core_id = underloaded
                    self._print(
                        "Load Balancer: Migrated Process %d to Core %d\n",
                        p.pid,
                        underloaded,
                    )
                    second = self.cpus[1].idle_ticks if self.ncpu > 1 else 0
                    self._print(
                        "Idle time of Core 0 : %d, Idle time of Core 1 : %d\n",
                        self.cpus[0].idle_ticks,
                        second,
                    )
                    return Migration(p.pid, overloaded, underloaded)
        return None

    # -- reporting --------------------------------------------------------

    def ps(self) -> str:
        """Write and return a listing of live processes with their cores."""
        with self._lock:
            lines = [format_message("PID\tState\t\tName\t\tCore Id\n")]
            for p in self._procs:
                if p.state is ProcState.UNUSED:
                    continue
                lines.append(
                    format_message(
                        "%d\t%s\t\t%s\t\t%d\n", p.pid, p.state.name, p.name, p.core_id
                    )
                )
        text = "".join(lines)
        self._console(text)
        return text

    def procdump(self) -> str:
        """Write and return a short debugging listing of live processes."""
        lines = [
            format_message("%d %s %s\n", p.pid, _DUMP_NAMES.get(p.state, "???"), p.name)
            for p in self._procs
            if p.state is not ProcState.UNUSED
        ]
        text = "".join(lines)
        self._console(text)
        return text

    def numcores(self) -> int:
        """Report the number of cores and return it."""
        self._print("Number of cores : %d", self.ncpu)
        return self.ncpu