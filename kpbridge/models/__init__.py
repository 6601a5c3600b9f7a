"""Domain models for the knowledge pool search bridge."""

from kpbridge.models.item import (
    AccessType, AclEntry, AclType, Absent, ExternalItem, ItemProperties, ItemState, Present,
)
from kpbridge.models.mapping import ExternalGroupMapping, ExternalItemMapping, FilePoolMembership
from kpbridge.models.schema import PREDEFINED_SCHEMA, Label, PropertyType, Schema, SchemaProperty
from kpbridge.models.source import ConnectorIdentity, IdentityType, SourceFile

__all__ = [
    "AccessType", "AclEntry", "AclType", "Absent", "ExternalItem", "ItemProperties",
    "ItemState", "Present",
    "ExternalGroupMapping", "ExternalItemMapping", "FilePoolMembership",
    "PREDEFINED_SCHEMA", "Label", "PropertyType", "Schema", "SchemaProperty",
    "ConnectorIdentity", "IdentityType", "SourceFile",
]
