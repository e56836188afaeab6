"""
Core pieces shared by the subsystems.

Components:
- errors.py: error kinds (ParseFailure, InvalidInterval, NoOpenJob, ...)
- ports.py: Protocols for the interactive prompt collaborator
- state.py: AppState passed to command handlers
"""
