from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from aquafeed.domain.enums import FeedingReason
from aquafeed.domain.exceptions import ValidationError


@dataclass(frozen=True)
class FeedingLog:
    """
    Registro de uma alimentação efetivamente realizada (manual ou automática).

    - Imutável: não existe caminho de edição/remoção neste subsistema.
    - `fed_at` e `created_at` são normalizados para UTC.
    - Valida no __post_init__: quantidade > 0 e `fed_at` não posterior a `created_at`.
    """

    pond_id: str
    fed_at: datetime
    feed_given_grams: float
    user_id: str
    pond_name: str = ""
    reason: FeedingReason = FeedingReason.MANUAL
    auto_logged: bool = False
    user_email: Optional[str] = None
    user_display_name: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None

    def __post_init__(self) -> None:
        tz = timezone.utc
        if self.fed_at.tzinfo is None:
            object.__setattr__(self, "fed_at", self.fed_at.replace(tzinfo=tz))
        if self.scheduled_for and self.scheduled_for.tzinfo is None:
            object.__setattr__(self, "scheduled_for", self.scheduled_for.replace(tzinfo=tz))
        if self.created_at is None:
            object.__setattr__(self, "created_at", datetime.now(tz))
        elif self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=tz))

        grams = self.feed_given_grams
        if grams is None or not math.isfinite(grams) or grams <= 0:
            raise ValidationError(f"Quantidade de ração inválida: {grams!r} (deve ser > 0 g).")
        if self.fed_at > self.created_at:
            raise ValidationError("Não é possível registrar alimentação em data/hora futura.")
        if not str(self.pond_id).strip():
            raise ValidationError("pond_id é obrigatório.")

    # -------------------------------------------------------------------------
    # Fábricas especializadas
    # -------------------------------------------------------------------------

    @staticmethod
    def manual(
        pond_id: str,
        fed_at: datetime,
        grams: float,
        user_id: str,
        pond_name: str = "",
        user_email: Optional[str] = None,
        user_display_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "FeedingLog":
        """Registro lançado pelo operador (`reason=MANUAL`)."""
        return FeedingLog(
            pond_id=pond_id,
            fed_at=fed_at,
            feed_given_grams=grams,
            user_id=user_id,
            pond_name=pond_name,
            reason=FeedingReason.MANUAL,
            auto_logged=False,
            user_email=user_email,
            user_display_name=user_display_name,
            created_at=now,
        )

    @staticmethod
    def missed_schedule(
        pond_id: str,
        slot: datetime,
        grams: float,
        user_id: str,
        pond_name: str = "",
        user_email: Optional[str] = None,
        user_display_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "FeedingLog":
        """
        Registro automático de um horário perdido.

        `fed_at` é o próprio horário agendado (não o instante da detecção),
        preservando a semântica de que o log representa o evento da grade.
        """
        return FeedingLog(
            pond_id=pond_id,
            fed_at=slot,
            feed_given_grams=grams,
            user_id=user_id,
            pond_name=pond_name,
            reason=FeedingReason.MISSED_SCHEDULE,
            auto_logged=True,
            user_email=user_email,
            user_display_name=user_display_name,
            scheduled_for=slot,
            created_at=now,
        )
