# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
CLI flags (-f, -R, -M, -v) override these for a single run.
"""

ENV_VARS = {
    # App / logging
    "JOBBER_APP_NAME": "App display name (default: jobber).",
    "JOBBER_LOG_LEVEL": "Logging level written to the log file (default: INFO).",
    "JOBBER_VERBOSE": "Verbose console logging (true/false).",
    # Paths
    "JOBBER_DATA_DIR": "Local directory for the log file (default: .local/jobber).",
    "JOBBER_FILE": "Jobs file (default: jobber.dat).",
    # Reporting
    "JOBBER_RESOLUTION": "Rounding granularity of hours (default: 0.25).",
    "JOBBER_RATE": "Money per hour; enables cost output when set.",
}
