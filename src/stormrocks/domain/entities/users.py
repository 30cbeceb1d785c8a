"""User-side entities: users, their credentials and password resets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from stormrocks.domain.entities.accounts import PhoneInfo
from stormrocks.domain.entities.base import LAST_UPDATE_USER, STANDARD_VIEWS
from stormrocks.domain.model import Document, Entity, attribute
from stormrocks.domain.views import ConcatenateView, EnabledDisabledView


@dataclass(frozen=True, slots=True)
class Preference(Document):
    """A user preference key/value pair."""

    key: str = attribute("")
    value: str = attribute("")


@dataclass(kw_only=True)
class User(Entity):
    """A person who can sign in."""

    # pylint: disable=too-many-instance-attributes

    TYPE_NAME = "User"
    COLLECTION = "Users"
    SEED_DIRECTORY = "users"
    RELATIONS = {
        "LastUpdateUser": LAST_UPDATE_USER,
        "Password": "Passwords,Password,PasswordId,false,",
        "Account": "Accounts,Account,DefaultAccountId,false,",
    }
    VIEWS = {
        "FullName": ConcatenateView(("Last", "First")),
        **STANDARD_VIEWS,
        "Locked": EnabledDisabledView("Locked"),
    }

    first: str = attribute("", required=True)
    last: str = attribute("", required=True)
    email: str = attribute("", required=True, email=True, unique=True)
    company_name: str = attribute("")
    office_name: str = attribute("")
    skype_id: str = attribute("")
    default_account_id: str = attribute("")
    phone: PhoneInfo = attribute(factory=PhoneInfo)
    ext: str = attribute("")
    mobile: PhoneInfo = attribute(factory=PhoneInfo)
    preferences: list[Preference] = attribute(factory=list)
    job_title: str = attribute("")
    dept: str = attribute("")
    bio: str = attribute("")
    photo_icon: str = attribute("")
    password_id: str = attribute("")
    language: str = attribute("")
    time_zone: str = attribute("")
    date_format: str = attribute("")
    last_login_date: datetime | None = attribute(None)
    last_login_ip: str = attribute("")
    login_attempts: int = attribute(0)
    locked: bool = attribute(False)
    enforce_password_change: bool = attribute(False)


@dataclass(kw_only=True)
class Password(Entity):
    """A stored password hash."""

    TYPE_NAME = "Password"
    COLLECTION = "Passwords"
    SEED_DIRECTORY = "passwords"

    value: str = attribute("", required=True)


@dataclass(kw_only=True)
class PasswordReset(Entity):
    """A pending or completed password reset request."""

    TYPE_NAME = "PasswordReset"
    COLLECTION = "PasswordResets"
    SEED_DIRECTORY = "passwordResets"

    user_id: str = attribute("", required=True)
    complete: bool = attribute(False)
    url: str = attribute("")
