# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored) or the /key console command,
which stores the key in the local database.
"""

ENV_VARS = {
    # App / logging
    "CUBIT_APP_NAME": "App display name (default: cubit).",
    "CUBIT_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Generative model
    "CUBIT_API_KEY": "API key for the model endpoint (GEMINI_API_KEY is accepted too).",
    "CUBIT_LLM_BASE_URL": "OpenAI-compatible endpoint (default: Gemini's OpenAI-compatible API).",
    "CUBIT_LLM_MODEL": "Model identifier (default: gemini-1.5-flash-001).",
    "CUBIT_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "CUBIT_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 60).",
    "CUBIT_OFFLINE": "Use the deterministic offline demo model (true/false).",
    # Extraction tuning
    "CUBIT_MIN_CALL_INTERVAL_SECONDS": "Minimum spacing between model calls (default: 2).",
    "CUBIT_TRANSCRIPT_CHAR_CAP": "Transcript characters sent to the model (default: 30000).",
    # Paths
    "CUBIT_DATA_DIR": "Local data dir for the database and logs (default: .local/cubit).",
    "CUBIT_DB_PATH": "SQLite database path (default: <data_dir>/cubit.sqlite3).",
}
