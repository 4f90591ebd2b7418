"""A small multiprocessor kernel model: process table, per-core scheduler, load balancer, locks, system calls and user-space tools."""

__version__ = "0.1.0"