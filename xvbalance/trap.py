"""Trap vectors and the timer interrupt that drives ticks, preemption and load balancing."""

from __future__ import annotations

import threading
from enum import IntEnum
from typing import Optional

from .proc import Migration, ProcessTable, ProcState

IRQ_TIMER = 0
IRQ_KBD = 1
IRQ_COM1 = 4
IRQ_IDE = 14
IRQ_ERROR = 19
IRQ_SPURIOUS = 31

LB_INTERVAL = 1000  # timer ticks per core between load-balancer runs
_TICK_MASK = 0xFFFFFFFF


class TrapNumber(IntEnum):
    """Processor-defined exception vectors and the kernel's own trap numbers."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


TIMER_VECTOR = TrapNumber.IRQ0 + IRQ_TIMER


class TimerController:
    """Handles timer interrupts for every core of a process table.

    Core 0 advances the global tick count and wakes processes sleeping on
    :attr:`channel`. Each core counts ticks since its last balancing
    interval; when a core reaches the interval its counter is reset, and
    core 0 then runs the load balancer. Finally a killed running process is
    made to exit and any other running process gives up its CPU.
    """

    def __init__(self, table: ProcessTable, interval: int = LB_INTERVAL) -> None:
        if interval < 1:
            raise ValueError("interval must be positive")
        self.table = table
        self.interval = interval
        self.channel = object()
        self._ticks = 0
        self._lock = threading.Lock()

    @property
    def ticks(self) -> int:
        """Timer interrupts counted on core 0 since start."""
        with self._lock:
            return self._ticks

    def tick(self, cpu_id: int) -> Optional[Migration]:
        """Deliver one timer interrupt to ``cpu_id``; return any migration it caused."""
        if not 0 <= cpu_id < self.table.ncpu:
            raise ValueError(f"no cpu {cpu_id}")
        if cpu_id == 0:
            with self._lock:
                self._ticks = (self._ticks + 1) & _TICK_MASK
                self.table.wakeup(self.channel)

        cpu = self.table.cpus[cpu_id]
        migration = None
        cpu.lb_ticks_since_last += 1
        if cpu.lb_ticks_since_last >= self.interval:
            cpu.lb_ticks_since_last = 0
            if cpu_id == 0:
                migration = self.table.load_balance()

        p = cpu.proc
        if p is not None and p.killed:
            self.table.exit(p.pid)
        elif p is not None and p.state is ProcState.RUNNING:
            self.table.yield_cpu(p.pid)
        return migration