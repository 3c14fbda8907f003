# aquafeed/domain/repositories/notifier.py
from __future__ import annotations
from typing import Protocol

class INotifier(Protocol):
    """
    Colaborador de envio de notificações (e-mail, SMS, ...).

    O motor decide *que* e *quando* notificar; entrega, re-tentativas e
    devoluções são responsabilidade da implementação.
    """

    def send(self, recipient: str, subject: str, body: str) -> None:
        """
        Solicita o envio de uma notificação.

        Raises:
            TransientIOError: falha de rede/transporte; o chamador re-tenta depois.
        """
        ...
