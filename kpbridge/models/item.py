"""External item domain model — typed view of a Graph ``externalItem``."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional, Union


class AclType(str, Enum):
    USER = "user"
    GROUP = "group"
    EVERYONE = "everyone"
    EVERYONE_EXCEPT_GUESTS = "everyoneExceptGuests"
    EXTERNAL_GROUP = "externalGroup"


class AccessType(str, Enum):
    GRANT = "grant"
    DENY = "deny"


@dataclass(frozen=True)
class AclEntry:
    type: AclType
    value: str
    access_type: AccessType = AccessType.GRANT

    @classmethod
    def external_group(cls, group_id: str) -> "AclEntry":
        return cls(AclType.EXTERNAL_GROUP, group_id, AccessType.GRANT)

    @classmethod
    def everyone(cls) -> "AclEntry":
        """Everyone grant; Graph requires a value, so each one gets a fresh UUID."""
        return cls(AclType.EVERYONE, str(uuid.uuid4()), AccessType.GRANT)

    def grants_group(self, group_id: str) -> bool:
        return (
            self.type == AclType.EXTERNAL_GROUP
            and self.access_type == AccessType.GRANT
            and self.value.lower() == group_id.lower()
        )

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "value": self.value, "accessType": self.access_type.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AclEntry":
        return cls(
            type=AclType(data["type"]),
            value=data.get("value", ""),
            access_type=AccessType(data.get("accessType", "grant")),
        )


# -- ACL helpers ----------------------------------------------------------------

def has_everyone(acl: list[AclEntry]) -> bool:
    return any(a.type == AclType.EVERYONE for a in acl)


def has_group_grant(acl: list[AclEntry], group_id: str) -> bool:
    return any(a.grants_group(group_id) for a in acl)


def without_group(acl: list[AclEntry], group_id: str) -> list[AclEntry]:
    """Drop every external-group entry for *group_id* (case-insensitive)."""
    return [
        a for a in acl
        if not (a.type == AclType.EXTERNAL_GROUP and a.value.lower() == group_id.lower())
    ]


def count_group_grants(acl: list[AclEntry]) -> int:
    return sum(
        1 for a in acl
        if a.type == AclType.EXTERNAL_GROUP and a.access_type == AccessType.GRANT
    )


# -- properties -----------------------------------------------------------------

# Python attribute name -> Graph schema property name
_PROPERTY_NAMES: dict[str, str] = {
    "title": "title",
    "url": "url",
    "rox_file_id": "roxFileId",
    "icon_url": "iconUrl",
    "knowledge_pool_ids": "knowledgePoolIds",
    "description": "description",
}


@dataclass
class ItemProperties:
    """The six schema properties. ``None`` means "not sent" in a partial update."""

    title: Optional[str] = None
    url: Optional[str] = None
    rox_file_id: Optional[str] = None
    icon_url: Optional[str] = None
    knowledge_pool_ids: Optional[str] = None
    description: Optional[str] = None

    def to_additional_data(self) -> dict[str, str]:
        return {
            _PROPERTY_NAMES[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_additional_data(cls, data: Optional[dict[str, Any]]) -> "ItemProperties":
        data = data or {}
        return cls(**{
            attr: data[graph_name]
            for attr, graph_name in _PROPERTY_NAMES.items()
            if data.get(graph_name) is not None
        })

    def merged_over(self, existing: "ItemProperties") -> "ItemProperties":
        """Fill the unset fields of this record from *existing*."""
        return ItemProperties(**{
            f.name: getattr(self, f.name) if getattr(self, f.name) is not None else getattr(existing, f.name)
            for f in fields(self)
        })


@dataclass
class ExternalItem:
    """A Graph external item. Unset parts are left untouched by an upsert."""

    id: Optional[str] = None
    content: Optional[str] = None
    properties: Optional[ItemProperties] = None
    acl: Optional[list[AclEntry]] = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.id is not None:
            body["id"] = self.id
        if self.acl is not None:
            body["acl"] = [a.to_dict() for a in self.acl]
        if self.properties is not None:
            body["properties"] = self.properties.to_additional_data()
        if self.content is not None:
            body["content"] = {"type": "text", "value": self.content}
        return body

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExternalItem":
        content = data.get("content") or {}
        return cls(
            id=data.get("id"),
            content=content.get("value"),
            properties=ItemProperties.from_additional_data(data.get("properties")),
            acl=[AclEntry.from_dict(a) for a in data.get("acl") or []],
        )


# -- item state -----------------------------------------------------------------

@dataclass(frozen=True)
class Absent:
    """No external item exists for the id."""


@dataclass(frozen=True)
class Present:
    item: ExternalItem = field(compare=False)

    @property
    def acl(self) -> list[AclEntry]:
        return list(self.item.acl or [])


ItemState = Union[Absent, Present]
