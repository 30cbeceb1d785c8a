"""Operational entities: settings, client errors, stored files, activity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from stormrocks.domain.entities.base import LAST_UPDATE_USER, STANDARD_VIEWS
from stormrocks.domain.model import Entity, attribute


@dataclass(kw_only=True)
class ServerSetting(Entity):
    """A runtime setting; ``any_value`` holds free-form structured data."""

    TYPE_NAME = "ServerSetting"
    COLLECTION = "ServerSettings"
    SEED_DIRECTORY = "serverSettings"

    name: str = attribute("")
    key: str = attribute("")
    category: str = attribute("")
    value: str = attribute("")
    any_value: Any = attribute(None, wire="Any")


@dataclass(kw_only=True)
class AppError(Entity):
    """An error reported by a client or raised on the server."""

    TYPE_NAME = "AppError"
    COLLECTION = "AppErrors"
    SEED_DIRECTORY = "appErrors"
    RELATIONS = {
        "User": "Users,User,UserId,false,",
        "Account": "Accounts,Account,AccountId,false,",
        "LastUpdateUser": LAST_UPDATE_USER,
    }
    VIEWS = STANDARD_VIEWS

    account_id: str = attribute("")
    user_id: str = attribute("")
    client_side: bool = attribute(False)
    url: str = attribute("")
    message: str = attribute("")
    stack_shown: str = attribute("")


@dataclass(kw_only=True)
class FileObject(Entity):
    """Metadata and inline content of an uploaded file."""

    TYPE_NAME = "FileObject"
    COLLECTION = "FileObjects"
    SEED_DIRECTORY = "fileObjects"

    name: str = attribute("")
    path: str = attribute("")
    single_download: bool = attribute(False)
    content: str = attribute("")
    size: int = attribute(0)
    type: str = attribute("")
    modified_unix: int = attribute(0)
    modified: datetime | None = attribute(None)
    md5: str = attribute("")
    account_id: str = attribute("")


@dataclass(kw_only=True)
class ActivityLog(Entity):
    """An audit entry: who did what to which entity."""

    TYPE_NAME = "ActivityLog"
    COLLECTION = "ActivityLogs"
    SEED_DIRECTORY = "activityLogs"
    RELATIONS = {
        "User": "Users,User,UserId,false,",
        "Account": "Accounts,Account,AccountId,false,",
    }

    account_id: str = attribute("")
    user_id: str = attribute("")
    entity: str = attribute("")
    entity_id: str = attribute("")
    action: str = attribute("")
    value: str = attribute("")
