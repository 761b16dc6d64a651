# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "HOUSEHOLD_APP_NAME": "App display name (default: household-tracker).",
    "HOUSEHOLD_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths
    "HOUSEHOLD_DATA_DIR": "Local data directory (default: .local/household).",
    "HOUSEHOLD_TASKS_DB_PATH": "SQLite task database (default: <data_dir>/tasks.sqlite3).",
    "HOUSEHOLD_QUEUE_PATH": "Pending-operation log (default: <data_dir>/pending_operations.jsonl).",
    # Overdue sweeper
    "HOUSEHOLD_SWEEP_ENABLED": "Run the overdue sweeper in the background (true/false).",
    "HOUSEHOLD_SWEEP_INTERVAL_HOURS": "Hours between sweeps; the first sweep runs at start-up (default: 24).",
    # Connectors
    "HOUSEHOLD_CONSOLE_ENABLED": "Enable the console REPL (true/false).",
}
