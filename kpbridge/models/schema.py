"""Connection schema model and the predefined schema for knowledge pool files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class PropertyType(str, Enum):
    STRING = "string"
    INT64 = "int64"
    DOUBLE = "double"
    DATETIME = "dateTime"
    BOOLEAN = "boolean"
    STRING_COLLECTION = "stringCollection"


class Label(str, Enum):
    TITLE = "title"
    URL = "url"
    CREATED_BY = "createdBy"
    LAST_MODIFIED_BY = "lastModifiedBy"
    AUTHORS = "authors"
    CREATED_DATE_TIME = "createdDateTime"
    LAST_MODIFIED_DATE_TIME = "lastModifiedDateTime"
    FILE_NAME = "fileName"
    FILE_EXTENSION = "fileExtension"
    ICON_URL = "iconUrl"
    CONTAINER_NAME = "containerName"
    CONTAINER_URL = "containerUrl"


@dataclass(frozen=True)
class SchemaProperty:
    name: str
    type: PropertyType = PropertyType.STRING
    is_searchable: Optional[bool] = None
    is_queryable: Optional[bool] = None
    is_retrievable: Optional[bool] = None
    labels: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.is_searchable is not None:
            body["isSearchable"] = self.is_searchable
        if self.is_queryable is not None:
            body["isQueryable"] = self.is_queryable
        if self.is_retrievable is not None:
            body["isRetrievable"] = self.is_retrievable
        if self.labels:
            body["labels"] = list(self.labels)
        return body

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SchemaProperty":
        return cls(
            name=data["name"],
            type=PropertyType(data.get("type", "string")),
            is_searchable=data.get("isSearchable"),
            is_queryable=data.get("isQueryable"),
            is_retrievable=data.get("isRetrievable"),
            labels=tuple(data.get("labels") or ()),
        )


@dataclass(frozen=True)
class Schema:
    base_type: str
    properties: tuple[SchemaProperty, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseType": self.base_type,
            "properties": [p.to_dict() for p in self.properties],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Schema":
        return cls(
            base_type=data.get("baseType") or "",
            properties=tuple(SchemaProperty.from_dict(p) for p in data.get("properties") or []),
        )


def schema_matches(existing: Schema, desired: Schema) -> bool:
    """Order-independent comparison of properties and of each property's labels."""
    if existing.base_type.lower() != desired.base_type.lower():
        return False
    if len(existing.properties) != len(desired.properties):
        return False

    by_name = {p.name.lower(): p for p in existing.properties}
    for want in desired.properties:
        have = by_name.get(want.name.lower())
        if have is None:
            return False
        if have.type != want.type:
            return False
        # unset flags count as False
        if bool(have.is_searchable) != bool(want.is_searchable):
            return False
        if bool(have.is_queryable) != bool(want.is_queryable):
            return False
        if bool(have.is_retrievable) != bool(want.is_retrievable):
            return False
        if {l.lower() for l in have.labels} != {l.lower() for l in want.labels}:
            return False
    return True


PREDEFINED_SCHEMA = Schema(
    base_type="microsoft.graph.externalItem",
    properties=(
        SchemaProperty("title", is_searchable=True, is_queryable=True, is_retrievable=True,
                       labels=(Label.TITLE.value,)),
        SchemaProperty("url", is_searchable=False, is_queryable=False, is_retrievable=True,
                       labels=(Label.URL.value,)),
        SchemaProperty("roxFileId", is_searchable=True, is_queryable=True, is_retrievable=True),
        SchemaProperty("iconUrl", is_searchable=False, is_queryable=False, is_retrievable=True,
                       labels=(Label.ICON_URL.value,)),
        SchemaProperty("knowledgePoolIds", is_searchable=True, is_queryable=True, is_retrievable=True),
        SchemaProperty("description", is_searchable=True, is_queryable=True, is_retrievable=True),
    ),
)
