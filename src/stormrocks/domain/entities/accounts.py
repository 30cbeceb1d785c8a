"""Account-side entities: accounts, their memberships and address lookups."""

from __future__ import annotations

from dataclasses import dataclass

from stormrocks.domain.entities.base import LAST_UPDATE_USER, STANDARD_VIEWS
from stormrocks.domain.model import Document, Entity, attribute


@dataclass(frozen=True, slots=True)
class PhoneInfo(Document):
    """A phone number as entered plus its normalized parts."""

    value: str = attribute("")
    numeric: str = attribute("")
    dial_code: str = attribute("")
    country_iso: str = attribute("")


@dataclass(kw_only=True)
class Account(Entity):
    """A customer or system account."""

    TYPE_NAME = "Account"
    COLLECTION = "Accounts"
    SEED_DIRECTORY = "accounts"
    RELATIONS = {
        "Country": "Countries,Country,CountryId,false,",
        "State": "States,State,StateId,false,",
        "RelatedAccount": "Accounts,Account,RelatedAcctId,false,",
        "LastUpdateUser": LAST_UPDATE_USER,
    }
    VIEWS = STANDARD_VIEWS

    account_name: str = attribute("", required=True)
    address1: str = attribute("", required=True)
    address2: str = attribute("")
    region: str = attribute("")
    city: str = attribute("", required=True)
    post_code: str = attribute("", required=True)
    country_id: str = attribute("", required=True)
    state_name: str = attribute("")
    state_id: str = attribute("")
    primary_phone: PhoneInfo = attribute(factory=PhoneInfo)
    secondary_phone: PhoneInfo = attribute(factory=PhoneInfo)
    email: str = attribute("", required=True, email=True)
    account_type_short: str = attribute("")
    account_type_long: str = attribute("")
    related_acct_id: str = attribute("")
    is_system_account: bool = attribute(False)


@dataclass(kw_only=True)
class AccountRole(Entity):
    """Grants a user a role within an account."""

    TYPE_NAME = "AccountRole"
    COLLECTION = "AccountRoles"
    SEED_DIRECTORY = "accountRoles"
    RELATIONS = {
        "User": "Users,User,UserId,false,",
        "Account": "Accounts,Account,AccountId,false,",
        "Role": "Roles,Role,RoleId,false,",
    }

    account_id: str = attribute("")
    user_id: str = attribute("")
    role_id: str = attribute("")


@dataclass(kw_only=True)
class Country(Entity):
    """ISO country lookup."""

    TYPE_NAME = "Country"
    COLLECTION = "Countries"
    SEED_DIRECTORY = "countries"

    iso: str = attribute("", wire="Iso", required=True, unique=True)
    name: str = attribute("", required=True)


@dataclass(kw_only=True)
class State(Entity):
    """State or province lookup, scoped to a country."""

    TYPE_NAME = "State"
    COLLECTION = "States"
    SEED_DIRECTORY = "states"

    short: str = attribute("")
    name: str = attribute("", required=True)
    alternative_name: str = attribute("")
    country: str = attribute("")
