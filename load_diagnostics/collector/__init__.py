# load_diagnostics/collector/__init__.py - Load record collection module
"""
Collector module for turning raw load history rows into sorted timelines.

This module provides:
- records.py: Load states, records and row normalization
- event_collector.py: Per-table timeline grouping
- row_source.py: DB-API and file row sources
- aggregator.py: Basic, size and throughput statistics
- pending_tracker.py: Pending and running backlog tracking
"""
