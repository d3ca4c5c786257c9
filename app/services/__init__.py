"""
NoteEase Intake Services Module.

Services:
    - SubmissionHandler: validate, store and announce one form submission
    - SubmissionStore: insert-only persistence of submission records
    - LocalFileSink: write-once storage for uploaded documents
    - Notifiers: administrator alerts over email, Telegram or the log
"""

from .notification_service import (
    EmailNotifier,
    LogNotifier,
    Notification,
    Notifier,
    TelegramNotifier,
    build_notification,
    create_notifier,
)
from .submission_service import SubmissionHandler, SubmissionOutcome
from .submission_store import SubmissionStore
from .upload_service import LocalFileSink, StoredFile, generate_stored_name

__all__ = [
    "EmailNotifier",
    "LocalFileSink",
    "LogNotifier",
    "Notification",
    "Notifier",
    "StoredFile",
    "SubmissionHandler",
    "SubmissionOutcome",
    "SubmissionStore",
    "TelegramNotifier",
    "build_notification",
    "create_notifier",
    "generate_stored_name",
]
