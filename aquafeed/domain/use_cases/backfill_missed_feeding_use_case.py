# aquafeed/domain/use_cases/backfill_missed_feeding_use_case.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import logging

from config.settings import MISSED_NEAR_MINUTES, TIMEZONE
from aquafeed.domain.clock import Clock, utc_now
from aquafeed.domain.entities.feed_suggestion import FeedSuggestion
from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.feeding_schedule import FeedingSchedule, TzLike, expand_today, local_date
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.repositories.feeding_log_repository import IFeedingLogRepository

log = logging.getLogger("aquafeed.usecases.backfill")

@dataclass(frozen=True)
class BackfillResult:
    """
    DTO imutável retornado pelo caso de uso.

    Atributos:
        missed_slot: horário perdido mais recente (None se nenhum).
        log: registro automático criado (None se não houve backfill).
    """
    missed_slot: Optional[datetime] = None
    log: Optional[FeedingLog] = None

class BackfillMissedFeedingUseCase:
    """
    Detecta o horário perdido mais recente (ontem/hoje) e cria um registro
    automático com a quantidade sugerida.

    Um horário é "perdido" se já passou e nenhum registro do viveiro está a
    ±90 min dele. Só o mais recente é tratado, e só se existir sugestão.
    """

    def __init__(
        self,
        log_repo: IFeedingLogRepository,
        clock: Optional[Clock] = None,
        tz: TzLike = TIMEZONE,
        near_minutes: int = MISSED_NEAR_MINUTES,
    ) -> None:
        self.log_repo = log_repo
        self.clock = clock or utc_now
        self.tz = tz
        self.near = timedelta(minutes=near_minutes)

    def find_missed_slot(
        self, schedule: FeedingSchedule, logs: Iterable[FeedingLog], now: datetime
    ) -> Optional[datetime]:
        """
        Varre os horários de ontem e hoje, do mais recente para o mais antigo,
        e retorna o primeiro sem registro próximo.
        """
        today = local_date(now, self.tz)
        slots: List[datetime] = expand_today(schedule, today - timedelta(days=1), self.tz)
        slots += expand_today(schedule, today, self.tz)

        fed = [l.fed_at for l in logs]
        for slot in sorted((s for s in slots if s <= now), reverse=True):
            if not any(abs(f - slot) <= self.near for f in fed):
                return slot
        return None

    def execute(
        self,
        schedule: FeedingSchedule,
        pond: Pond,
        user: User,
        suggestion: Optional[FeedSuggestion],
    ) -> BackfillResult:
        """
        Executa o backfill para um viveiro.

        Returns:
            BackfillResult: com `log` preenchido se um registro automático foi gravado.
        """
        if not schedule.active:
            return BackfillResult()

        now = self.clock()
        missed = self.find_missed_slot(schedule, self.log_repo.list_by_pond(pond.id), now)
        if missed is None:
            return BackfillResult()

        if suggestion is None or not suggestion.available:
            # sem sugestão não há quantidade confiável para lançar
            log.info("backfill_skipped_no_suggestion pond=%s slot=%s", pond.id, missed.isoformat())
            return BackfillResult(missed_slot=missed)

        entry = FeedingLog.missed_schedule(
            pond_id=pond.id,
            slot=missed,
            grams=suggestion.per_feeding_grams,
            user_id=user.id,
            pond_name=pond.name,
            user_email=user.email,
            user_display_name=user.display_name,
            now=now,
        )
        saved = self.log_repo.add(entry)
        log.warning("backfill_logged pond=%s slot=%s grams=%s",
                    pond.id, missed.isoformat(), suggestion.per_feeding_grams)
        return BackfillResult(missed_slot=missed, log=saved)
