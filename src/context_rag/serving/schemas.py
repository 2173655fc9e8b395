"""Request bodies for the streaming endpoints.

Field names follow the browser client (camelCase); snake_case names are
accepted too.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from context_rag.chat.responder import ChatQuery
from context_rag.ingestion.orchestrator import IngestionSource, is_valid_http_url


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AddContextRequest(_Request):
    """Body of ``POST /api/context``."""

    text: str
    is_url: bool = Field(default=False, alias="isUrl")
    user_name: str = Field(default="", alias="userName")
    user_id: str = Field(default="", alias="userId")

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Either text or URL must be provided")
        return value

    @model_validator(mode="after")
    def _url_is_http(self) -> AddContextRequest:
        if self.is_url:
            self.text = self.text.strip()
            if not is_valid_http_url(self.text):
                raise ValueError("Invalid URL provided")
        return self

    def to_source(self) -> IngestionSource:
        return IngestionSource(text=self.text, is_url=self.is_url, user_name=self.user_name)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(_Request):
    """Body of ``POST /api/chat``."""

    query: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(default_factory=list)
    use_only_my_context: bool = Field(default=False, alias="useOnlyMyContext")
    user_id: str | None = Field(default=None, alias="userId")
    language: str = "English"

    def to_query(self) -> ChatQuery:
        return ChatQuery(
            query=self.query,
            messages=tuple((m.role, m.content) for m in self.messages),
            use_only_my_context=self.use_only_my_context,
            user_id=self.user_id,
            language=self.language,
        )
