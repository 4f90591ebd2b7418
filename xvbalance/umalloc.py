"""A first-fit free-list allocator over a simulated, growable heap."""

from __future__ import annotations

from typing import Dict, Optional, Set

UNIT = 8  # size of a block header, and the allocation granule
_MIN_GROWTH = 4096  # fewest units requested from the heap at once
_BASE = 0  # address of the empty sentinel block


class OutOfMemory(MemoryError):
    """Raised when the heap cannot grow to satisfy a request."""


class Allocator:
    """Hand out and reclaim blocks of a heap that grows in large steps.

    Free blocks form a circular list sorted by address, anchored at a
    zero-sized sentinel; freeing a block merges it with free neighbours.
    Addresses returned point just past each block's header.
    """

    def __init__(self, heap_start: int = 0x1000, heap_limit: int = 0x80000000) -> None:
        if heap_start <= _BASE or heap_start % UNIT:
            raise ValueError("heap_start must be a positive multiple of the unit size")
        if heap_limit < heap_start:
            raise ValueError("heap_limit lies below heap_start")
        self._brk = heap_start
        self._limit = heap_limit
        self._size: Dict[int, int] = {}
        self._next: Dict[int, int] = {}
        self._freep: Optional[int] = None
        self._allocated: Set[int] = set()

    def malloc(self, nbytes: int) -> int:
        """Allocate at least ``nbytes`` bytes and return the block's address."""
        if nbytes < 0:
            raise ValueError("cannot allocate a negative size")
        nunits = (nbytes + UNIT - 1) // UNIT + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * UNIT
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + UNIT
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, address: int) -> None:
        """Return a block obtained from :meth:`malloc` to the free list."""
        header = address - UNIT
        if header not in self._allocated:
            raise ValueError(f"address {address:#x} was not allocated")
        self._allocated.remove(header)
        self._release(header)

    def _release(self, bp: int) -> None:
        p = self._freep
        assert p is not None
        while not (p < bp < self._next[p]):
            following = self._next[p]
            if p >= following and (bp > p or bp < following):
                break
            p = following
        following = self._next[p]
        if bp + self._size[bp] * UNIT == following:
            self._size[bp] += self._size.pop(following)
            self._next[bp] = self._next.pop(following)
        else:
            self._next[bp] = following
        if p + self._size[p] * UNIT == bp:
            self._size[p] += self._size.pop(bp)
            self._next[p] = self._next.pop(bp)
        else:
            self._next[p] = bp
        self._freep = p

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, _MIN_GROWTH)
        request = nunits * UNIT
        if self._brk + request > self._limit:
            raise OutOfMemory(f"cannot grow heap by {request} bytes")
        header = self._brk
        self._brk += request
        self._size[header] = nunits
        self._release(header)
        assert self._freep is not None
        return self._freep