"""Collaborator interfaces for the execution scheduler."""

from watchrun.core.interfaces import ICommandRunner, INotificationSource

__all__ = [
    "INotificationSource",
    "ICommandRunner",
]
