# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Nothing here is imported at runtime; see src/things_bridge/config.py.
"""

ENV_VARS = {
    # App / logging
    "THINGS_BRIDGE_APP_NAME": "App display name (default: things-bridge).",
    "THINGS_BRIDGE_LOG_LEVEL": "Console logging level (default: INFO).",
    "THINGS_BRIDGE_DATA_DIR": "Local data directory for logs (default: .local/things-bridge).",
    # Things database
    "THINGS_DB_PATH": (
        "Path to main.sqlite (default: auto-discovered in the Things 3 group container)."
    ),
    "THINGS_EPOCH_OFFSET": (
        "Seconds added to raw startDate/deadline values. Unset => calibrate from the database."
    ),
    # Tuning
    "THINGS_BRIDGE_RESULT_CAP": "Max rows returned by search and logbook (default: 50).",
}
