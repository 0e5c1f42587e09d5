"""Taxonomia de erros do chatflow.

Nenhum destes erros chega ao cliente final: a camada de aplicação captura,
loga e degrada (mensagem otimista mantida, presets ocultos, volta à raiz).
"""

from __future__ import annotations


class ChatflowError(Exception):
    """Base de todos os erros do pacote."""

    pass


class PersistenceError(ChatflowError):
    """Falha de create/list/update em um gateway de dados."""

    pass


class SubscriptionError(ChatflowError):
    """Canal realtime não pôde ser estabelecido (ou caiu)."""

    pass


class NavigationStateCorrupt(ChatflowError):
    """Estado de navegação persistido ilegível ou inconsistente."""

    pass


class ChatTransitionError(ChatflowError):
    """Transição de status de chat não permitida pela tabela de ciclo de vida."""

    pass
