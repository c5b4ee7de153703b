from datetime import date, datetime

from pydantic import BaseModel, ConfigDict

from chat_digest.schemas.graph import GraphChat


class SummaryOutput(BaseModel):
    overview: str = ""
    decisions: str = ""
    action_items: str = ""
    blockers: str = ""
    resources: str = ""


class SummaryItem(BaseModel):
    id: int
    chat_id: str
    period_start: date
    period_end: date
    generated_at: datetime
    summary: str
    parsed: SummaryOutput
    ai_provider: str | None = None


class SummaryResult(BaseModel):
    id: int
    summary: str
    parsed: SummaryOutput
    message_count: int
    new_message_count: int
    provider: str


class SyncResult(BaseModel):
    chat_id: str
    fetched_count: int
    new_message_count: int
    since: datetime | None = None


class MonitoredConversationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chat_id: str
    chat_name: str | None = None
    chat_type: str | None = None
    status: str
    is_active: bool
    created_at: datetime


class ConversationOverview(BaseModel):
    chats: list[GraphChat]
    monitored: list[MonitoredConversationItem]
    ignored: list[MonitoredConversationItem]
