"""Error taxonomy shared by the engine, the services and the boundaries."""

from __future__ import annotations


class TaskWorksError(Exception):
    status_code = 500


class ValidationError(TaskWorksError):
    """Malformed request input: bad date, negative or non-numeric option."""

    status_code = 400


class StorageError(TaskWorksError):
    """The store collaborator could not deliver a snapshot."""

    status_code = 500
