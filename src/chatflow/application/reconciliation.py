"""Mensagens otimistas e reconciliação com o eco realtime.

O canal realtime (não a resposta da escrita) é a fonte de verdade para
confirmar uma mensagem. Enquanto o eco não chega, a mensagem local fica com id
`optimistic_*` e um `client_ref` nos metadados.

Pareamento de um eco do próprio remetente:
1. `client_ref` igual (quando o eco o carrega);
2. senão, mesmo remetente + mesmo conteúdo (heurística: duas mensagens
   idênticas seguidas podem parear na ordem trocada).
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import StrEnum

from chatflow.domain.enums import SenderType
from chatflow.domain.messages import CLIENT_REF_KEY, Message, MessageBody, body_to_storage
from chatflow.utils.ids import new_client_ref, new_optimistic_id


class ReconcileOutcome(StrEnum):
    APPENDED = "appended"
    REPLACED = "replaced"
    DUPLICATE = "duplicate"


def build_optimistic_message(
    chat_id: str,
    sender_type: SenderType,
    body: MessageBody,
    sender_id: str | None = None,
    now: datetime | None = None,
) -> Message:
    """Cria a cópia local (não confirmada) de uma mensagem de saída."""

    content, metadata = body_to_storage(body)
    return Message(
        id=new_optimistic_id(),
        chat_id=chat_id,
        sender_type=sender_type,
        sender_id=sender_id,
        content=content,
        message_type=body.kind,
        metadata={**metadata, CLIENT_REF_KEY: new_client_ref()},
        is_read=False,
        created_at=now or datetime.now(tz=UTC),
    )


def find_optimistic_match(messages: Sequence[Message], incoming: Message) -> int | None:
    """Índice da primeira mensagem otimista que o eco confirma (ou None)."""

    ref = incoming.client_ref
    if ref is not None:
        for index, local in enumerate(messages):
            if local.is_optimistic and local.client_ref == ref:
                return index
        return None

    for index, local in enumerate(messages):
        if (
            local.is_optimistic
            and local.sender_type == incoming.sender_type
            and local.content == incoming.content
        ):
            return index
    return None


def reconcile_incoming(
    messages: list[Message], incoming: Message, own_sender: SenderType
) -> ReconcileOutcome:
    """Aplica uma mensagem recebida à lista local (mutação in-place).

    - id já exibido → DUPLICATE (nada muda)
    - eco do próprio remetente com otimista correspondente → REPLACED, na
      mesma posição (sem reordenar)
    - demais casos → APPENDED
    """
    if any(local.id == incoming.id for local in messages):
        return ReconcileOutcome.DUPLICATE

    if incoming.sender_type == own_sender:
        index = find_optimistic_match(messages, incoming)
        if index is not None:
            messages[index] = incoming
            return ReconcileOutcome.REPLACED

    messages.append(incoming)
    return ReconcileOutcome.APPENDED


def merge_history(history: Sequence[Message], live: Sequence[Message]) -> list[Message]:
    """Une o histórico carregado com o que chegou/foi criado durante o load.

    O histórico vem primeiro; mensagens locais já presentes no histórico (por
    id ou por pareamento otimista) são descartadas.
    """
    merged = list(history)
    known_ids = {message.id for message in merged}

    for message in live:
        if message.id in known_ids:
            continue
        if message.is_optimistic and _confirmed_by(history, message):
            continue
        merged.append(message)
        known_ids.add(message.id)

    return merged


def _confirmed_by(history: Sequence[Message], optimistic: Message) -> bool:
    ref = optimistic.client_ref
    for message in history:
        if ref is not None and message.client_ref == ref:
            return True
        if (
            message.client_ref is None
            and message.sender_type == optimistic.sender_type
            and message.content == optimistic.content
        ):
            return True
    return False


def timeline(messages: Sequence[Message]) -> list[Message]:
    """Ordem de exibição: created_at ascendente (estável para empates)."""

    return sorted(messages, key=lambda message: message.created_at)
