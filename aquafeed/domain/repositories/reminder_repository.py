# aquafeed/domain/repositories/reminder_repository.py
from __future__ import annotations
from typing import Protocol
from aquafeed.domain.entities.reminder_marker import ReminderMarker

class IReminderMarkerRepository(Protocol):
    """
    Contrato do espaço de marcadores de lembrete (append-only, particionado por grade).

    A criação precisa ser atômica por chave: é o ponto de linearização que
    garante no máximo um lembrete por (grade, horário, usuário).
    """

    def exists(self, schedule_id: str, key: str) -> bool:
        """True se já existe marcador para a chave na grade."""
        ...

    def create(self, marker: ReminderMarker) -> bool:
        """
        Cria o marcador se ainda não existir.

        Returns:
            True se este chamador criou o marcador; False se a chave já existia
            (no-op, não é erro).
        """
        ...

    def release(self, schedule_id: str, key: str) -> None:
        """
        Desfaz a reserva de um marcador cujo envio falhou (o horário volta a ser candidato).

        Só é chamado para reservas cujo lembrete nunca foi enviado; marcador de
        lembrete enviado é permanente.
        """
        ...
