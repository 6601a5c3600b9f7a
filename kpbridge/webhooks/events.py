"""Webhook event payloads sent by the document system."""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

KNOWLEDGE_POOL_CREATED = "knowledgepool.created"
KNOWLEDGE_POOL_REMOVED = "knowledgepool.removed"
KNOWLEDGE_POOL_FILE_ADDED = "knowledgepool.file.added"
KNOWLEDGE_POOL_FILE_REMOVED = "knowledgepool.file.removed"
FILE_UPDATED = "file.updated"
KNOWLEDGE_POOL_MEMBER_ADDED = "knowledgepool.member.added"
KNOWLEDGE_POOL_MEMBER_REMOVED = "knowledgepool.member.removed"


class WebhookEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = ""


class KnowledgePoolCreatedEvent(WebhookEvent):
    knowledge_pool_id: str = Field(default="", alias="knowledgePoolId")


class KnowledgePoolRemovedEvent(WebhookEvent):
    knowledge_pool_id: str = Field(default="", alias="knowledgePoolId")


class _FileContentEvent(WebhookEvent):
    file_id: str = Field(default="", alias="fileId")
    title: str = ""
    download_url: str = Field(default="", alias="downloadUrl")
    supported_for_knowledge_pools: bool = Field(default=True, alias="supportedForKnowledgePools")


class KnowledgePoolFileAddedEvent(_FileContentEvent):
    knowledge_pool_id: str = Field(default="", alias="knowledgePoolId")


class FileUpdatedEvent(_FileContentEvent):
    pass


class KnowledgePoolFileRemovedEvent(WebhookEvent):
    file_id: str = Field(default="", alias="fileId")
    knowledge_pool_id: str = Field(default="", alias="knowledgePoolId")


class _MemberEvent(WebhookEvent):
    knowledge_pool_id: str = Field(default="", alias="knowledgePoolId")
    roxtra_group_gid: Optional[UUID] = Field(default=None, alias="roxtraGroupGid")
    # Entra ID group the source group is synchronised with; may be empty
    external_group_id: Optional[str] = Field(default="", alias="externalGroupId")


class KnowledgePoolMemberAddedEvent(_MemberEvent):
    pass


class KnowledgePoolMemberRemovedEvent(_MemberEvent):
    pass


EVENT_MODELS: dict[str, type[WebhookEvent]] = {
    KNOWLEDGE_POOL_CREATED: KnowledgePoolCreatedEvent,
    KNOWLEDGE_POOL_REMOVED: KnowledgePoolRemovedEvent,
    KNOWLEDGE_POOL_FILE_ADDED: KnowledgePoolFileAddedEvent,
    KNOWLEDGE_POOL_FILE_REMOVED: KnowledgePoolFileRemovedEvent,
    FILE_UPDATED: FileUpdatedEvent,
    KNOWLEDGE_POOL_MEMBER_ADDED: KnowledgePoolMemberAddedEvent,
    KNOWLEDGE_POOL_MEMBER_REMOVED: KnowledgePoolMemberRemovedEvent,
}


def normalise_keys(payload: dict[str, Any], model: type[WebhookEvent]) -> dict[str, Any]:
    """Map payload keys onto the model's aliases, ignoring case."""
    known = {}
    for name, info in model.model_fields.items():
        alias = info.alias or name
        known[alias.lower()] = alias
    return {known.get(k.lower(), k): v for k, v in payload.items()}


def parse_event(payload: dict[str, Any], event_type: str) -> WebhookEvent:
    model = EVENT_MODELS[event_type]
    return model.model_validate(normalise_keys(payload, model))
