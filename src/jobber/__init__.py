"""
Jobber: a personal work-time tracker.

Components:
- temporal/: parsing of loose human time expressions and durations
- jobs/: Job model, line codec, file-backed JobStore, reports
- core/: error kinds, collaborator ports, application state
- cli/: composition root, command registry, entrypoint
"""

__version__ = "0.3.0"
