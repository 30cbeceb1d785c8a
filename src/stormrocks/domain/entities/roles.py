"""Authorization entities: roles, features and the groups features live in."""

from __future__ import annotations

from dataclasses import dataclass

from stormrocks.domain.entities.base import LAST_UPDATE_USER, STANDARD_VIEWS
from stormrocks.domain.model import Entity, attribute


@dataclass(kw_only=True)
class Role(Entity):
    """A named bundle of features granted to users through account roles."""

    TYPE_NAME = "Role"
    COLLECTION = "Roles"
    SEED_DIRECTORY = "roles"
    RELATIONS = {
        "RoleFeatures": "RoleFeatures,RoleFeature,Id,true,RoleId",
        "LastUpdateUser": LAST_UPDATE_USER,
    }
    VIEWS = STANDARD_VIEWS

    name: str = attribute("", required=True)
    account_id: str = attribute("")
    can_delete: bool = attribute(False)
    account_type: str = attribute("", required=True)
    short_name: str = attribute("")


@dataclass(kw_only=True)
class RoleFeature(Entity):
    """Links a feature to a role."""

    TYPE_NAME = "RoleFeature"
    COLLECTION = "RoleFeatures"
    SEED_DIRECTORY = "roleFeatures"
    RELATIONS = {
        "Role": "Roles,Role,RoleId,false,",
        "Feature": "Features,Feature,FeatureId,false,",
    }

    role_id: str = attribute("")
    feature_id: str = attribute("")


@dataclass(kw_only=True)
class Feature(Entity):
    """A switchable application capability, identified by a unique key."""

    TYPE_NAME = "Feature"
    COLLECTION = "Features"
    SEED_DIRECTORY = "features"
    RELATIONS = {
        "FeatureGroup": "FeatureGroups,FeatureGroup,FeatureGroupId,false,",
        "LastUpdateUser": LAST_UPDATE_USER,
    }
    VIEWS = STANDARD_VIEWS

    key: str = attribute("", required=True, unique=True)
    name: str = attribute("", required=True)
    description: str = attribute("", required=True)
    feature_group_id: str = attribute("", required=True)


@dataclass(kw_only=True)
class FeatureGroup(Entity):
    """A display grouping of features."""

    TYPE_NAME = "FeatureGroup"
    COLLECTION = "FeatureGroups"
    SEED_DIRECTORY = "featureGroups"
    RELATIONS = {
        "Features": "Features,Feature,Id,true,FeatureGroupId",
        "LastUpdateUser": LAST_UPDATE_USER,
    }
    VIEWS = STANDARD_VIEWS

    name: str = attribute("", required=True)
    account_type: str = attribute("")
