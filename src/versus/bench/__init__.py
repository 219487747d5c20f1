"""Benchmarking engine for versus.

Builds deterministic fixtures, times and samples each tool's commands,
reduces the trials, compares the two tools and synthesizes insights
across all scenarios.
"""
