from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional


def reminder_key(iso_date: str, time_label: str, user_id: str) -> str:
    """Chave determinística do lembrete: "<AAAA-MM-DD>_<HH:MM>_<userId>"."""
    return f"{iso_date}_{time_label}_{user_id}"


@dataclass(frozen=True)
class ReminderMarker:
    """
    Marcador de idempotência de um lembrete (uma por grade, dia, horário e usuário).

    Criar um marcador com chave já existente é um no-op no repositório; é isso
    que torna o disparo seguro sob execuções repetidas ou concorrentes.
    """

    schedule_id: str
    slot_date: date
    time_label: str
    user_id: str
    scheduled_at: datetime
    pond_id: str = ""
    pond_name: str = ""
    email: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is None:
            object.__setattr__(self, "created_at", datetime.now(timezone.utc))

    @property
    def key(self) -> str:
        return reminder_key(self.slot_date.isoformat(), self.time_label, self.user_id)
