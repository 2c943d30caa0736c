"""Benchmarking subsystem for parbench.

Provides the timed parallel executor, the registry of built-in
workloads, and the runner that selects, executes and reports them.
"""
