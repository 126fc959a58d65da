from __future__ import annotations

import logging

from intakeform.config import Settings
from intakeform.protocols import Storage
from intakeform.repo_json import JSONStorage
from intakeform.repo_sqlite import SQLiteStorage

logger = logging.getLogger(__name__)


def init_storage(settings: Settings) -> Storage:
    backend = settings.storage_backend
    path = settings.database_path
    logger.info("Opening %s document store at %s", backend, path)
    if backend == "json":
        return JSONStorage(path)
    return SQLiteStorage(path)
