"""Modelos de mensagem (append-only) e corpo tipado por tipo de mensagem.

No armazenamento a mensagem é `content` + `metadata` livre; na aplicação o
conteúdo é lido através de `Message.body`, uma variante fechada por tipo:

- TextBody{content}
- ImageBody{url, name}
- DocumentBody{url, name, size}
- PresetBody{label, preset_id}
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chatflow.domain.enums import MessageKind, SenderType
from chatflow.utils.ids import is_optimistic_id

CLIENT_REF_KEY = "client_ref"
FILE_URL_KEY = "file_url"
FILE_NAME_KEY = "file_name"
FILE_SIZE_KEY = "file_size"
PRESET_ID_KEY = "preset_id"


class TextBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str


class ImageBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image"] = "image"
    url: str
    name: str | None = None


class DocumentBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["document"] = "document"
    url: str
    name: str
    size: int = 0


class PresetBody(BaseModel):
    """Eco do rótulo do botão de preset clicado pelo cliente."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["preset"] = "preset"
    label: str
    preset_id: str | None = None


MessageBody = Annotated[
    TextBody | ImageBody | DocumentBody | PresetBody,
    Field(discriminator="kind"),
]


def body_to_storage(body: MessageBody) -> tuple[str | None, dict[str, Any]]:
    """Converte o corpo tipado para o formato de armazenamento (content, metadata)."""

    if isinstance(body, TextBody):
        return body.content, {}
    if isinstance(body, ImageBody):
        metadata: dict[str, Any] = {FILE_URL_KEY: body.url}
        if body.name:
            metadata[FILE_NAME_KEY] = body.name
        return body.name, metadata
    if isinstance(body, DocumentBody):
        return body.name, {
            FILE_URL_KEY: body.url,
            FILE_NAME_KEY: body.name,
            FILE_SIZE_KEY: body.size,
        }
    if isinstance(body, PresetBody):
        return body.label, {PRESET_ID_KEY: body.preset_id} if body.preset_id else {}
    raise TypeError(f"Unsupported message body: {type(body).__name__}")


class Message(BaseModel):
    """Mensagem persistida (ou otimista, se o id tiver o prefixo local)."""

    id: str
    chat_id: str
    sender_type: SenderType
    sender_id: str | None = None
    content: str | None = None
    message_type: MessageKind = MessageKind.TEXT
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("created_at")
    @classmethod
    def _created_at_aware(cls, value: datetime) -> datetime:
        # Timestamps sem fuso são tratados como UTC para ordenação consistente
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    @property
    def is_optimistic(self) -> bool:
        return is_optimistic_id(self.id)

    @property
    def client_ref(self) -> str | None:
        ref = self.metadata.get(CLIENT_REF_KEY)
        return ref if isinstance(ref, str) and ref else None

    @property
    def body(self) -> MessageBody:
        """Corpo tipado derivado de message_type + metadata.

        Mídia sem URL (metadata incompleto) degrada para texto.
        """
        meta = self.metadata
        url = meta.get(FILE_URL_KEY)

        if self.message_type == MessageKind.IMAGE and isinstance(url, str):
            return ImageBody(url=url, name=meta.get(FILE_NAME_KEY) or self.content)

        if self.message_type == MessageKind.DOCUMENT and isinstance(url, str):
            size = meta.get(FILE_SIZE_KEY)
            return DocumentBody(
                url=url,
                name=meta.get(FILE_NAME_KEY) or self.content or "",
                size=size if isinstance(size, int) else 0,
            )

        if self.message_type == MessageKind.PRESET:
            return PresetBody(label=self.content or "", preset_id=meta.get(PRESET_ID_KEY))

        return TextBody(content=self.content or "")
