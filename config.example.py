# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file,
looked up from the directory the app is started in).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKTANK_APP_NAME": "App display name (default: tasktank).",
    "TASKTANK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TASKTANK_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths
    "TASKTANK_DATA_DIR": "Local data directory for tasks and logs (default: ~/.tasktank).",
    "TASKTANK_TASKS_PATH": "JSON Lines task file (default: <data_dir>/tasks.jsonl).",
    "TASKS_PATH": "Unprefixed alias of TASKTANK_TASKS_PATH.",
    # Tuning
    "TASKTANK_SAVE_DELAY_SECONDS": "Quiet period before a throttled save hits the disk (default: 1.0).",
}
