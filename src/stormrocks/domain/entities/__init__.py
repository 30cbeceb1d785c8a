"""Concrete StormRocks entity types."""

from .accounts import Account, AccountRole, Country, PhoneInfo, State
from .roles import Feature, FeatureGroup, Role, RoleFeature
from .system import ActivityLog, AppError, FileObject, ServerSetting
from .users import Password, PasswordReset, Preference, User

ALL_ENTITIES = (
    Account,
    AccountRole,
    ActivityLog,
    AppError,
    Country,
    Feature,
    FeatureGroup,
    FileObject,
    Password,
    PasswordReset,
    Role,
    RoleFeature,
    ServerSetting,
    State,
    User,
)

__all__ = [
    "ALL_ENTITIES",
    "Account",
    "AccountRole",
    "ActivityLog",
    "AppError",
    "Country",
    "Feature",
    "FeatureGroup",
    "FileObject",
    "Password",
    "PasswordReset",
    "PhoneInfo",
    "Preference",
    "Role",
    "RoleFeature",
    "ServerSetting",
    "State",
    "User",
]
