"""
Job subsystem.

Components:
- job_models.py: Job interval model, tag helpers, hour rounding
- job_codec.py: one-line record format of the jobs file
- job_store.py: file-backed ordered JobStore (start/end/drop/join/filter)
- job_report.py: per-day aggregation, tag registry, CSV export
"""
