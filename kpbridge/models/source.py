"""Values received from the source document system."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional


@dataclass
class SourceFile:
    """A file as delivered by an event; content is streamed once and discarded."""

    file_id: str
    title: str
    content_stream: Optional[BinaryIO] = field(default=None, repr=False)


class IdentityType(str, Enum):
    USER = "user"
    GROUP = "group"
    EXTERNAL_GROUP = "externalGroup"


@dataclass(frozen=True)
class ConnectorIdentity:
    """Member of a Graph external group."""

    id: str
    type: IdentityType = IdentityType.GROUP
    identity_source: Optional[str] = "azureActiveDirectory"

    def to_dict(self) -> dict[str, str]:
        body = {"id": self.id, "type": self.type.value}
        if self.identity_source:
            body["identitySource"] = self.identity_source
        return body
