"""Ollama wire shapes for /api/chat and /api/generate."""
from pydantic import BaseModel, ConfigDict
from typing import List, Literal, Optional


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Literal["system", "user", "assistant", "tool"] = "assistant"
    content: str = ""


class ChatRequest(BaseModel):
    model: str
    messages: List[ChatMessage]
    stream: Literal[False] = False


class ChatResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[ChatMessage] = None

    @property
    def content(self) -> Optional[str]:
        return self.message.content if self.message else None


class GenerateRequest(BaseModel):
    model: str
    prompt: str
    stream: Literal[False] = False


class GenerateResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    response: str = ""
