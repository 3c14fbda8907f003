# aquafeed/domain/use_cases/dispatch_reminders_use_case.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging
import time

from config.settings import REMINDER_WINDOW_MINUTES, TIMEZONE
from aquafeed.domain.clock import Clock, utc_now
from aquafeed.domain.entities.feed_suggestion import FeedSuggestion
from aquafeed.domain.entities.feeding_schedule import (
    FeedingSchedule, TzLike, is_scheduled_on, local_date, slot_instant,
)
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.entities.reminder_marker import ReminderMarker, reminder_key
from aquafeed.domain.enums import DispatchStatus
from aquafeed.domain.exceptions import ThrottledError, TransientIOError, ValidationError
from aquafeed.domain.repositories.notifier import INotifier
from aquafeed.domain.repositories.pond_repository import IPondRepository, IUserRepository
from aquafeed.domain.repositories.reminder_repository import IReminderMarkerRepository
from aquafeed.domain.use_cases.manage_schedule_use_case import LoadScheduleUseCase
from aquafeed.domain.use_cases.suggest_feed_use_case import SuggestFeedUseCase

log = logging.getLogger("aquafeed.usecases.dispatch")

@dataclass
class DispatchResult:
    """
    Resumo de uma varredura de lembretes.

    Atributos:
        status: OK, NO_APPROVED_USERS ou THROTTLED.
        candidates: horários dentro da janela encontrados nesta varredura.
        sent: lembretes enviados (marcador gravado).
        skipped: candidatos já notificados (marcador existente).
        failed: envios com falha transitória (re-tentados na próxima varredura).
        truncated: True se a varredura parou pelo limite de tempo.
    """
    status: DispatchStatus = DispatchStatus.OK
    candidates: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    truncated: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data

class _Stop(Exception):
    """Interrupção controlada da varredura (limite de tempo)."""

class DispatchRemindersUseCase:
    """
    Varre usuários aprovados → viveiros → grade ativa e envia no máximo um
    lembrete por (grade, horário, usuário).

    A varredura é reentrante: rodar duas vezes no mesmo minuto, ou duas
    instâncias ao mesmo tempo, não duplica lembretes. A criação atômica do
    marcador é o único ponto de sincronização (não há lock distribuído).
    """

    def __init__(
        self,
        user_repo: IUserRepository,
        pond_repo: IPondRepository,
        schedule_loader: LoadScheduleUseCase,
        marker_repo: IReminderMarkerRepository,
        notifier: INotifier,
        suggest_feed: Optional[SuggestFeedUseCase] = None,
        clock: Optional[Clock] = None,
        tz: TzLike = TIMEZONE,
        window_minutes: int = REMINDER_WINDOW_MINUTES,
        max_run_seconds: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Injeta repositórios, colaboradores e parâmetros da varredura.

        Args:
            schedule_loader: leitura da grade com realinhamento.
            suggest_feed: opcional; quando presente o lembrete inclui a sugestão (g).
            window_minutes: antecedência máxima do lembrete (default 60).
            max_run_seconds: limite de duração da varredura (None/0 = sem limite).
        """
        self.user_repo = user_repo
        self.pond_repo = pond_repo
        self.schedule_loader = schedule_loader
        self.marker_repo = marker_repo
        self.notifier = notifier
        self.suggest_feed = suggest_feed
        self.clock = clock or utc_now
        self.tz = tz
        self.window = timedelta(minutes=window_minutes)
        self.max_run_seconds = max_run_seconds or None
        self.monotonic = monotonic

    def execute(self) -> DispatchResult:
        """
        Executa uma varredura completa.

        Fluxo:
            1) usuários aprovados (nenhum → NO_APPROVED_USERS)
            2) para cada viveiro do usuário com grade ativa, horários de hoje e amanhã
            3) candidato se 0 < horário − agora <= janela
            4) marcador existente → pula; senão reserva o marcador, envia e mantém

        Returns:
            DispatchResult com contadores; THROTTLED se o banco recusou recursos.
        """
        now = self.clock()
        started = self.monotonic()
        result = DispatchResult()
        log.info("dispatch_started at=%s", now.isoformat())

        try:
            users = list(self.user_repo.list_approved())
        except ThrottledError as e:
            log.warning("dispatch_throttled stage=users err=%s", e)
            result.status = DispatchStatus.THROTTLED
            return result

        if not users:
            log.info("dispatch_no_approved_users")
            result.status = DispatchStatus.NO_APPROVED_USERS
            return result

        # cache por varredura: a grade e a sugestão do viveiro são as mesmas para todos os usuários
        schedules: Dict[str, Optional[FeedingSchedule]] = {}
        suggestions: Dict[str, Optional[FeedSuggestion]] = {}

        try:
            for user in users:
                for pond in self.pond_repo.list_for_user(user.id):
                    schedule = self._schedule_for(pond, schedules)
                    if schedule is None:
                        continue
                    for slot, label in self._candidates(schedule, now):
                        if self.max_run_seconds and self.monotonic() - started > self.max_run_seconds:
                            raise _Stop()
                        result.candidates += 1
                        self._dispatch_one(user, pond, schedule, slot, label, suggestions, result)
        except ThrottledError as e:
            log.warning("dispatch_throttled sent=%s err=%s", result.sent, e)
            result.status = DispatchStatus.THROTTLED
        except _Stop:
            log.warning("dispatch_truncated after=%.1fs sent=%s", self.monotonic() - started, result.sent)
            result.truncated = True

        log.info("dispatch_finished status=%s candidates=%s sent=%s skipped=%s failed=%s",
                 result.status.value, result.candidates, result.sent, result.skipped, result.failed)
        return result

    # ---------- helpers ----------
    def _schedule_for(self, pond: Pond, cache: Dict[str, Optional[FeedingSchedule]]) -> Optional[FeedingSchedule]:
        if pond.id not in cache:
            try:
                schedule = self.schedule_loader.execute(pond)
            except ValidationError as e:
                # documento malformado afeta só este viveiro
                log.warning("schedule_invalid pond=%s err=%s", pond.id, e)
                schedule = None
            cache[pond.id] = schedule if schedule and schedule.active else None
        return cache[pond.id]

    def _candidates(self, schedule: FeedingSchedule, now: datetime) -> Iterator[Tuple[datetime, str]]:
        """Horários (instante, "HH:MM") dentro da janela; inclui amanhã para janelas que cruzam a meia-noite."""
        today = local_date(now, self.tz)
        for day in (today, today + timedelta(days=1)):
            if not is_scheduled_on(schedule, day):
                continue
            for t in sorted(schedule.times_of_day):
                slot = slot_instant(day, t, self.tz)
                delta = slot - now
                if timedelta(0) < delta <= self.window:
                    yield slot, str(t)

    def _dispatch_one(
        self,
        user: User,
        pond: Pond,
        schedule: FeedingSchedule,
        slot: datetime,
        label: str,
        suggestions: Dict[str, Optional[FeedSuggestion]],
        result: DispatchResult,
    ) -> None:
        slot_day = local_date(slot, self.tz)
        key = reminder_key(slot_day.isoformat(), label, user.id)

        if self.marker_repo.exists(schedule.id, key):
            result.skipped += 1
            log.debug("reminder_already_sent key=%s", key)
            return

        # leituras antes da reserva: uma falha aqui não deixa marcador órfão
        subject, body = self._message(schedule, pond, slot_day, label, self._suggestion_for(pond, suggestions))
        marker = ReminderMarker(
            schedule_id=schedule.id,
            slot_date=slot_day,
            time_label=label,
            user_id=user.id,
            scheduled_at=slot,
            pond_id=pond.id,
            pond_name=schedule.pond_name or pond.name,
            email=user.email,
            created_at=self.clock(),
        )
        if not self.marker_repo.create(marker):
            # outra execução concorrente ganhou a reserva
            result.skipped += 1
            log.debug("reminder_claimed_elsewhere key=%s", key)
            return

        try:
            self.notifier.send(user.email, subject, body)
        except TransientIOError as e:
            result.failed += 1
            log.warning("reminder_send_failed key=%s err=%s", key, e)
            self.marker_repo.release(schedule.id, key)
            return
        except BaseException:
            # envio não aconteceu: devolve a reserva antes de abortar a varredura
            self.marker_repo.release(schedule.id, key)
            raise

        result.sent += 1
        log.info("reminder_sent pond=%s slot=%s user=%s", pond.id, label, user.id)

    def _suggestion_for(self, pond: Pond, cache: Dict[str, Optional[FeedSuggestion]]) -> Optional[FeedSuggestion]:
        if self.suggest_feed is None:
            return None
        if pond.id not in cache:
            cache[pond.id] = self.suggest_feed.execute(pond)
        return cache[pond.id]

    @staticmethod
    def _message(
        schedule: FeedingSchedule, pond: Pond, day: date, label: str, suggestion: Optional[FeedSuggestion]
    ) -> Tuple[str, str]:
        """Assunto e corpo do lembrete."""
        name = schedule.pond_name or pond.name or "Viveiro sem nome"
        subject = f"Lembrete de alimentação: {name} às {label}"
        lines: List[str] = [
            f"Atenção! A alimentação do viveiro {name} está agendada para {day:%d/%m} às {label}.",
        ]
        if suggestion is not None and suggestion.available:
            lines.append(f"Quantidade sugerida por alimentação: {suggestion.per_feeding_grams} g.")
        lines.append("Deixe a ração separada e confira a situação do viveiro no painel.")
        return subject, "\n".join(lines)
