from pydantic import BaseModel, Field
from typing import List, Optional

from event_authz.engine import EventRequest, Nip05
from event_authz.event import Event


class EventModel(BaseModel):
    id: str = ""
    pubkey: str
    created_at: int = 0
    kind: int
    tags: List[List[str]] = Field(default_factory=list)
    content: str = ""
    sig: str = ""


class Nip05Model(BaseModel):
    pubkey: str = ""
    domain: str = ""


class EventRequestModel(BaseModel):
    event: EventModel
    auth_pubkey: Optional[str] = None
    origin: Optional[str] = None
    user_agent: Optional[str] = None
    nip05: Optional[Nip05Model] = None

    def to_request(self) -> EventRequest:
        return EventRequest(
            event=Event.from_dict(self.event.model_dump()),
            auth_pubkey=self.auth_pubkey,
            origin=self.origin,
            user_agent=self.user_agent,
            nip05=Nip05(**self.nip05.model_dump()) if self.nip05 else None,
        )


class EventReplyModel(BaseModel):
    decision: str
    message: str


class Users(BaseModel):
    allow: Optional[List[str]] = None
    deny: Optional[List[str]] = None


class UpdateResult(BaseModel):
    allowed: List[str] = Field(default_factory=list)
    denied: List[str] = Field(default_factory=list)
    rejected: List[str] = Field(default_factory=list)
