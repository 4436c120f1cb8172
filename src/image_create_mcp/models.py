"""Request and result models shared by the server, adapters and storage."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

ROLES = ("system", "user", "assistant")
OVERWRITE_POLICIES = ("error", "overwrite", "suffix")

# A content part is an OpenAI-style dict:
#   {"type": "text", "text": ...}
#   {"type": "image_url", "image_url": {"url": ...}}
#   {"type": "inline_data", "inline_data": {"mime_type": ..., "data": ...}}
ContentPart = Dict[str, Any]


@dataclass(frozen=True)
class ChatMessage:
    """A single chat turn."""
    role: str
    content: Union[str, Tuple[ContentPart, ...]]

    @property
    def text(self) -> str:
        """Plain text of the message, joining text parts."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(
            part.get("text", "") for part in self.content
            if part.get("type") == "text" and part.get("text")
        )

    @property
    def parts(self) -> List[ContentPart]:
        """Content as a list of typed parts."""
        if isinstance(self.content, str):
            return [{"type": "text", "text": self.content}] if self.content else []
        return list(self.content)

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [dict(part) for part in self.content]}


@dataclass(frozen=True)
class OutputOptions:
    """Where and how generated images are written."""
    dir: str = "."
    filename: str = "image"
    overwrite: str = "suffix"


@dataclass(frozen=True)
class NormalizedInput:
    """Canonical request built once per tool call."""
    provider: str
    model: str
    prompt: str
    messages: Tuple[ChatMessage, ...]
    params: Dict[str, Any] = field(default_factory=dict)
    output: OutputOptions = field(default_factory=OutputOptions)
    request_id: str = ""


@dataclass(frozen=True)
class SavedImage:
    """An image persisted to disk."""
    path: str
    mime_type: str
    size_bytes: int
    index: int
    source: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "mimeType": self.mime_type,
            "sizeBytes": self.size_bytes,
            "index": self.index,
            "source": self.source,
        }


@dataclass
class GenerationManifest:
    """Result of a successful generate_image call."""
    provider: str
    model: str
    images: List[SavedImage]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "images": [image.to_dict() for image in self.images],
        }
