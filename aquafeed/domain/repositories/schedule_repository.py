# aquafeed/domain/repositories/schedule_repository.py
from __future__ import annotations
from typing import Protocol, Optional
from aquafeed.domain.entities.feeding_schedule import FeedingSchedule

class IScheduleRepository(Protocol):
    """
    Contrato de repositório para a grade de alimentação (uma por viveiro).

    A grade nunca é removida: apenas substituída por inteiro (upsert).
    """

    def get_by_pond(self, pond_id: str) -> Optional[FeedingSchedule]:
        """
        Recupera a grade do viveiro.

        Returns:
            Optional[FeedingSchedule]: a grade, ou None se o viveiro ainda não tem uma.

        Raises:
            ValidationError: documento armazenado malformado.
        """
        ...

    def save(self, schedule: FeedingSchedule) -> None:
        """Grava a grade inteira, criando ou substituindo a existente (chave = pond_id)."""
        ...
