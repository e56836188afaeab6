"""
Temporal subsystem.

Components:
- time_parser.py: time points, ranges and list filters from loose human text
- time_range.py: half-open TimeRange value
- duration.py: work durations ("2:30", "2.5", "2h30m", ...)
"""
