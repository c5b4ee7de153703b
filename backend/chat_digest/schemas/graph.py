"""Microsoft Graph chat/message payloads"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GraphModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GraphUser(GraphModel):
    id: str | None = None
    display_name: str | None = Field(None, alias="displayName")


class GraphIdentitySet(GraphModel):
    user: GraphUser | None = None


class GraphItemBody(GraphModel):
    content: str | None = None
    content_type: str | None = Field(None, alias="contentType")


class GraphMessagePreview(GraphModel):
    created_date_time: datetime | None = Field(None, alias="createdDateTime")


class GraphChat(GraphModel):
    id: str
    topic: str | None = None  # 1:1 chats have no topic
    chat_type: str = Field("group", alias="chatType")  # oneOnOne, group, meeting
    last_message_preview: GraphMessagePreview | None = Field(None, alias="lastMessagePreview")

    @property
    def last_activity(self) -> datetime | None:
        if self.last_message_preview is None:
            return None
        return self.last_message_preview.created_date_time


class GraphMessage(GraphModel):
    id: str
    sender: GraphIdentitySet | None = Field(None, alias="from")
    body: GraphItemBody | None = None
    created_date_time: datetime = Field(..., alias="createdDateTime")
    last_modified_date_time: datetime | None = Field(None, alias="lastModifiedDateTime")

    @property
    def author(self) -> str | None:
        if self.sender is None or self.sender.user is None:
            return None
        return self.sender.user.display_name

    @property
    def content(self) -> str | None:
        return self.body.content if self.body else None


class GraphPage(GraphModel):
    value: list[dict] = Field(default_factory=list)
    next_link: str | None = Field(None, alias="@odata.nextLink")
