# load_diagnostics/analyzer/__init__.py - Analysis module
"""
Analyzer module for turning load records into statistics, insights and reports.

This module provides:
- frequency_analyzer.py: Interval statistics and frequency classification
- phase_analyzer.py: Write/publish/total phase duration statistics
- profile_analyzer.py: Completion concurrency and import pattern detection
- insight_synthesizer.py: Rule-based insights and recommendations
- report_generator.py: Text, Markdown and JSON reports
- results.py: Result types shared by the analyzers
- table_analysis.py: Single-table analysis pipeline
- overview.py: Multi-table frequency overview
"""
