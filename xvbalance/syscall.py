"""System-call numbers and the dispatcher that routes calls to their handlers."""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import Callable, Dict, Mapping, Optional

from .fmt import format_message
from .proc import ProcessTable
from .trap import TimerController

KERNBASE = 0x80000000  # first address above user memory
_UINT_MASK = 0xFFFFFFFF

Handler = Callable[..., Optional[int]]


class Syscall(IntEnum):
    """System-call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    PS = 22
    NUMCORES = 23


class UnknownSyscall(LookupError):
    """Raised when a process makes a call with no handler."""

    def __init__(self, pid: int, number: int) -> None:
        super().__init__(f"pid {pid}: unknown sys call {number}")
        self.pid = pid
        self.number = number


class SyscallDispatcher:
    """Routes system calls from processes to their handlers.

    Process-management calls are handled here; further handlers, such as
    file-system calls, can be supplied as a mapping from call number to a
    callable taking the calling pid and the call's arguments.
    """

    def __init__(
        self,
        table: ProcessTable,
        timer: Optional[TimerController] = None,
        handlers: Optional[Mapping[int, Handler]] = None,
        console: Optional[Callable[[str], object]] = None,
    ) -> None:
        self.table = table
        self.timer = timer if timer is not None else TimerController(table)
        self._console = console if console is not None else sys.stdout.write
        self._sleep_start: Dict[int, int] = {}
        self._handlers: Dict[Syscall, Handler] = {
            Syscall.FORK: self._sys_fork,
            Syscall.EXIT: self._sys_exit,
            Syscall.WAIT: self._sys_wait,
            Syscall.KILL: self._sys_kill,
            Syscall.GETPID: self._sys_getpid,
            Syscall.SBRK: self._sys_sbrk,
            Syscall.SLEEP: self._sys_sleep,
            Syscall.UPTIME: self._sys_uptime,
            Syscall.PS: self._sys_ps,
            Syscall.NUMCORES: self._sys_numcores,
        }
        for number, handler in (handlers or {}).items():
            self._handlers[Syscall(number)] = handler

    def dispatch(self, pid: int, number: int, *args: object) -> Optional[int]:
        """Run call ``number`` for process ``pid`` and return its result.

        A result of None means the process has been put to sleep and must
        repeat the call once it is woken.
        """
        proc = self.table[pid]
        try:
            call: Optional[Syscall] = Syscall(number)
        except ValueError:
            call = None
        handler = self._handlers.get(call) if call is not None else None
        if handler is None:
            self._console(
                format_message("%d %s: unknown sys call %d\n", proc.pid, proc.name, int(number))
            )
            raise UnknownSyscall(proc.pid, int(number))
        return handler(pid, *args)

    def _sys_fork(self, pid: int) -> int:
        return self.table.fork(pid)

    def _sys_exit(self, pid: int) -> None:
        self._sleep_start.pop(pid, None)
        self.table.exit(pid)
        return None

    def _sys_wait(self, pid: int) -> Optional[int]:
        return self.table.wait(pid)

    def _sys_kill(self, pid: int, target: int) -> int:
        self.table.kill(target)
        return 0

    def _sys_getpid(self, pid: int) -> int:
        return self.table[pid].pid

    def _sys_sbrk(self, pid: int, n: int) -> int:
        proc = self.table[pid]
        addr = proc.sz
        new = addr + n
        if n > 0:
            if new >= KERNBASE:
                raise MemoryError(f"sbrk: cannot grow process {pid} by {n} bytes")
        elif n < 0:
            if new < 0:
                # Shrinking past zero wraps around and leaves the size alone.
                new = addr
            elif new == 0:
                raise MemoryError(f"sbrk: cannot shrink process {pid} to nothing")
        proc.sz = new
        return addr

    def _sys_sleep(self, pid: int, n: int) -> Optional[int]:
        proc = self.table[pid]
        now = self.timer.ticks
        start = self._sleep_start.setdefault(pid, now)
        if (now - start) & _UINT_MASK >= (n & _UINT_MASK):
            del self._sleep_start[pid]
            return 0
        if proc.killed:
            del self._sleep_start[pid]
            raise InterruptedError(f"sleep: process {pid} was killed")
        self.table.sleep(pid, self.timer.channel)
        return None

    def _sys_uptime(self, pid: int) -> int:
        return self.timer.ticks

    def _sys_ps(self, pid: int) -> int:
        self.table.ps()
        return 1

    def _sys_numcores(self, pid: int) -> int:
        self.table.numcores()
        return 1