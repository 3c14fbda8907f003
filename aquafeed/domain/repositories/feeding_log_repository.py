# define como salvar/buscar os registros de alimentação, mas nao onde
from __future__ import annotations
from datetime import datetime
from typing import Protocol, Iterable
from aquafeed.domain.entities.feeding_log import FeedingLog

class IFeedingLogRepository(Protocol):
    """Persistência append-only dos registros de alimentação.

    Implementações concretas (SQL, NoSQL, memória) ficam a cargo da infra.
    """

    def add(self, log: FeedingLog) -> FeedingLog:
        """Persiste um registro já validado pelo domínio.

        Returns:
            O registro com `id` preenchido pela implementação.
        """
        ...

    def list_by_pond(self, pond_id: str) -> Iterable[FeedingLog]:
        """Lista todos os registros do viveiro, do mais recente para o mais antigo (`fed_at` DESC)."""
        ...

    def list_between(self, pond_id: str, start: datetime, end: datetime) -> Iterable[FeedingLog]:
        """Registros do viveiro com `start <= fed_at < end` (instantes UTC)."""
        ...
