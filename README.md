# xvbalance

`xvbalance` models a small multiprocessor teaching kernel in plain Python.
Every process is pinned to a core when it is created. Each core's scheduler
runs only the processes pinned to it. A periodic load balancer moves work
from the busiest core to the idlest one. The package also has the kernel's
locks, part of its system-call table, and a few of the user-space pieces
that run on it: a `printf`, a shell command parser, a memory allocator and
a word counter.

It has no dependencies beyond the standard library.

## Installation

```
pip install xvbalance
```

To run the test suite, install the `test` extra and run pytest:

```
pip install "xvbalance[test]"
pytest
```

## Modules

### `xvbalance.proc`

`ProcessTable(ncpu=2, nproc=64, console=None)` holds `nproc` `Proc` slots and
`ncpu` `Cpu` records (at most 8). Text the table prints goes to `console`, a
callable taking a string; it defaults to `sys.stdout.write`.

- `userinit()` creates the first process, named `initcode`.
- `fork(parent_pid)` returns the pid of a new runnable child. It raises
  `OSError` when the table is full.
- `exit(pid)` turns a process into a zombie, wakes its parent and hands its
  children to the first process.
- `wait(pid)` reaps one zombie child and returns its pid. If there are
  children but none has exited, the caller is put to sleep and `None` is
  returned. With no children, or when the caller was killed, it raises
  `ChildProcessError`.
- `kill(pid)` marks a process killed and wakes it if it sleeps.
- `sleep(pid, chan)` and `wakeup(chan)` put processes to sleep on a channel
  and wake them again. `wakeup` returns the pids it woke.
- `schedule(cpu_id)` advances a core's scheduling pass by one step. It
  starts the next runnable process pinned to that core and returns its pid.
  When the pass reaches the end of the table, it counts one idle tick for
  the core and returns `None`.
- `yield_cpu(pid)` makes a running process give up its core.
- `load_balance()` compares the cores' idle ticks. The threshold is 20% of
  the average idle ticks. When the idlest core has more idle ticks than the
  busiest core by more than that threshold, it moves the first runnable
  process of the busiest core to the idlest one. It prints the move to the
  console and returns it as a `Migration(pid, from_core, to_core)`.
  Otherwise it returns `None`.
- `ps()`, `procdump()` and `numcores()` print a listing, a short debug
  listing and the core count. Each also returns what it printed: `ps` and
  `procdump` return the text, `numcores` returns the count.
- A table can be indexed by pid and iterated over its live processes.

New processes are given cores in round-robin order. Errors are raised as
`KernelPanic` and `ProcessNotFound`. `ProcState` lists the slot states.

### `xvbalance.trap`

`TimerController(table, interval=1000)` models the timer interrupt, and
`tick(cpu_id)` delivers one interrupt to a core:

- On core 0 it advances `ticks` and wakes processes sleeping on `channel`.
- Every core counts ticks since its last balancing interval. When core 0
  reaches the interval, it runs `load_balance()`, and `tick` returns any
  `Migration` that resulted.
- A killed running process is made to exit. Any other running process
  yields its core.

`TrapNumber` lists the trap and interrupt vectors.

### `xvbalance.syscall`

`SyscallDispatcher(table, timer=None, handlers=None, console=None)` routes
calls by their `Syscall` number. `dispatch(pid, number, *args)` runs a call.
A number with no handler is reported on the console and raises
`UnknownSyscall`.

Handlers are built in for these calls:

- `FORK`, `EXIT`, `WAIT`, `KILL` and `GETPID`.
- `SBRK`, which moves the process size and returns the old size. It raises
  `MemoryError` when the size cannot change.
- `SLEEP`, which returns `None` while the process must keep sleeping. It
  raises `InterruptedError` if the process is killed while it sleeps.
- `UPTIME`, `PS` and `NUMCORES`.

Other numbers can be given handlers through the `handlers` mapping. Each
handler is a callable that takes the calling pid and the call's arguments.

### `xvbalance.locks`

- `SpinLock` is held by a CPU. Acquiring a lock the same CPU already holds,
  or releasing one it does not hold, raises `LockError`.
- `SleepLock` is held by a pid. Waiters block until the holder releases it.

### `xvbalance.shell`

`parse_command(line)` turns a command line into a tree of `ExecCmd`,
`RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd` nodes. It understands `<`,
`>`, `>>` (which opens the file for writing, like `>`), `|`, `;`, `&` and
parentheses. A command takes fewer than 10 words. It raises
`ShellSyntaxError` on bad input. `Tokenizer` is the underlying lexer.

### `xvbalance.fmt`

`format_message(fmt, *args)` is the small `printf`. It understands `%d`,
`%x`, `%p`, `%s`, `%c` and `%%`, and treats integers as 32-bit words.

### `xvbalance.umalloc`

`Allocator(heap_start=0x1000, heap_limit=0x80000000)` is a first-fit
free-list allocator over a simulated heap.

- `malloc(nbytes)` returns an integer address. `malloc` raises
  `OutOfMemory` when the heap cannot grow past `heap_limit`.
- `free(address)` merges the block back into the free list. Freeing an
  address that was not allocated raises `ValueError`.

### `xvbalance.wc`

`count(data)` returns the `Counts(lines, words, chars)` of a bytes object.

## Examples

```python
from xvbalance.fmt import format_message

format_message("%d %s\n", 42, "init")   # "42 init\n"
format_message("%x", 255)               # "FF"
```

```python
from xvbalance.shell import parse_command

tree = parse_command("cat < in | wc > out ; echo done &")
```

```python
from xvbalance.proc import ProcessTable

table = ProcessTable(ncpu=2, console=lambda text: None)
init = table.userinit()          # pinned to core 0
child = table.fork(init.pid)     # pinned to core 1
table.schedule(1)                # runs the child on core 1
```

## Command line

The word counter can be run from the shell:

```
xvbalance-wc file1 file2
```

For each file it prints the line, word and byte counts followed by the file
name. With no arguments it reads standard input. If a file cannot be opened,
it stops with exit status 1.

## What the package does not do

- There is no file system. The file-related calls (`OPEN`, `READ`, `WRITE`,
  `EXEC`, `PIPE` and the rest) have numbers in `Syscall` but no built-in
  handler. Unless you supply one, dispatching them raises `UnknownSyscall`.
- Processes have no memory or page tables. A process size is only a number.
- The shell parses command lines but does not run them. There is no
  interactive shell command.
- Nothing boots or runs on its own. Time passes only when you call
  `TimerController.tick` and `ProcessTable.schedule`.