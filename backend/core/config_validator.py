"""
Configuration validation for the Kotahi backend.
Validates directories, database schema and settings on startup.
"""
import sqlite3
from typing import List, Dict, Any


class ConfigValidator:
    """Validates system configuration before serving requests."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        self._validate_directories()
        self._validate_schema_file()
        self._validate_database()
        self._validate_config_values()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_directories(self):
        """Check that the data and subtitle directories exist and are directories."""
        from core.config import DATA_DIR, VTT_DIR

        directories = {
            "Data directory": DATA_DIR,
            "VTT directory": VTT_DIR,
        }

        for name, path in directories.items():
            if not path.exists():
                self.errors.append(f"{name} not found at {path}.")
            elif not path.is_dir():
                self.errors.append(f"{name} at {path} is not a directory.")

    def _validate_schema_file(self):
        from core.config import SCHEMA_PATH

        if not SCHEMA_PATH.exists():
            self.errors.append(f"Schema file not found at {SCHEMA_PATH}.")

    def _validate_database(self):
        """Check that database is accessible and schema is initialized."""
        from core.config import DB_PATH

        if not DB_PATH.exists():
            self.warnings.append(
                f"Database file not found at {DB_PATH}. "
                "Will be created on first run."
            )
            return

        try:
            from core.database import db

            required_tables = [
                "vocabulary",
                "videos",
                "watch_history",
                "vocabulary_index",
            ]

            for table in required_tables:
                result = db.execute_one(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,)
                )
                if not result:
                    self.errors.append(
                        f"Required database table missing: {table}. "
                        "Run schema initialization."
                    )

        except sqlite3.Error as e:
            self.errors.append(f"Database connection error: {e}")

    def _validate_config_values(self):
        """Validate configuration value ranges and types."""
        from core.config import (
            REQUEST_TIMEOUT_SEC,
            REINDEX_TIMEOUT_SEC,
            REINDEX_LOCK_TIMEOUT_SEC,
            MIN_QUERY_LENGTH,
            SEARCH_MAX_WORKERS,
            RECENT_EXPOSURE_DAYS,
            CSV_MAX_BYTES,
            MAORI_MAX_LENGTH,
            ENGLISH_MAX_LENGTH,
            DESCRIPTION_MAX_LENGTH,
            LOG_LEVEL,
            VTT_URL_PREFIX,
        )

        if REQUEST_TIMEOUT_SEC <= 0:
            self.errors.append(f"REQUEST_TIMEOUT_SEC ({REQUEST_TIMEOUT_SEC}) must be > 0")

        if REINDEX_TIMEOUT_SEC < REQUEST_TIMEOUT_SEC:
            self.warnings.append(
                f"REINDEX_TIMEOUT_SEC ({REINDEX_TIMEOUT_SEC}) is shorter than "
                f"REQUEST_TIMEOUT_SEC ({REQUEST_TIMEOUT_SEC})"
            )

        if REINDEX_LOCK_TIMEOUT_SEC < 0:
            self.errors.append(f"REINDEX_LOCK_TIMEOUT_SEC ({REINDEX_LOCK_TIMEOUT_SEC}) must be >= 0")

        if MIN_QUERY_LENGTH < 1:
            self.errors.append(f"MIN_QUERY_LENGTH ({MIN_QUERY_LENGTH}) must be >= 1")

        if SEARCH_MAX_WORKERS < 2:
            self.warnings.append(
                f"SEARCH_MAX_WORKERS ({SEARCH_MAX_WORKERS}) < 2: search lookups will run one after another"
            )
        if SEARCH_MAX_WORKERS < 1:
            self.errors.append(f"SEARCH_MAX_WORKERS ({SEARCH_MAX_WORKERS}) must be >= 1")

        if RECENT_EXPOSURE_DAYS < 0:
            self.errors.append(f"RECENT_EXPOSURE_DAYS ({RECENT_EXPOSURE_DAYS}) must be >= 0")

        if CSV_MAX_BYTES <= 0:
            self.errors.append(f"CSV_MAX_BYTES ({CSV_MAX_BYTES}) must be > 0")

        for name, value in (
            ("MAORI_MAX_LENGTH", MAORI_MAX_LENGTH),
            ("ENGLISH_MAX_LENGTH", ENGLISH_MAX_LENGTH),
            ("DESCRIPTION_MAX_LENGTH", DESCRIPTION_MAX_LENGTH),
        ):
            if value <= 0:
                self.errors.append(f"{name} ({value}) must be > 0")

        if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            self.warnings.append(f"LOG_LEVEL ({LOG_LEVEL}) is not a standard level, INFO will be used")

        if not VTT_URL_PREFIX.endswith("/"):
            self.warnings.append(f"VTT_URL_PREFIX ({VTT_URL_PREFIX}) should end with '/'")

# Global validator instance
config_validator = ConfigValidator()
