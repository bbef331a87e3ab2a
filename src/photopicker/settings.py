from __future__ import annotations

import os

SQLITE_PATH = os.getenv("SQLITE_PATH", "./photopicker.db")
ARCHIVE_ROOT = os.getenv("ARCHIVE_ROOT", "./archive")
SOURCE_ROOTS = [root for root in os.getenv("SOURCE_ROOTS", "").split(os.pathsep) if root]

TIME_THRESHOLD_SECONDS = float(os.getenv("TIME_THRESHOLD_SECONDS", "5"))
SIZE_THRESHOLD_PERCENT = float(os.getenv("SIZE_THRESHOLD_PERCENT", "10"))
MAX_SEQUENCE_GAP = int(os.getenv("MAX_SEQUENCE_GAP", "2"))
GROUPING_WORKERS = int(os.getenv("GROUPING_WORKERS", "2"))

LOG_DIR = os.getenv("LOG_DIR", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
