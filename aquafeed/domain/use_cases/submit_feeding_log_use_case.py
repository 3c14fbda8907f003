"""
Fluxo guardado de registro manual de alimentação.

`SubmissionGuard` é a máquina de estados que decide se uma tentativa de
registro pode ser gravada:

    IDLE → VALIDATING → BLOCKED(motivo)
                      | PENDING_TOO_EARLY_REJECT      (parada definitiva)
                      | PENDING_EARLY_CONFIRM         (aviso, aceita confirm())
                      | PENDING_AMOUNT_CONFIRM        (aviso, aceita confirm())
                      → SUBMITTING → DONE

Ordem das regras:
    1) horário futuro ou quantidade <= 0            → BLOCKED(INVALID_INPUT)
       (a quantidade é arredondada para gramas inteiras)
    2) registros de hoje >= frequência do viveiro    → BLOCKED(DAILY_LIMIT_REACHED)
    3) próximo horário de hoje a mais de 60 min     → PENDING_TOO_EARLY_REJECT
       próximo horário em até 60 min                 → PENDING_EARLY_CONFIRM
    4) quantidade diferente da sugerida              → PENDING_AMOUNT_CONFIRM
    5) caso contrário (ou tudo confirmado)           → grava o registro

A rejeição por antecedência vem antes da confirmação de quantidade: uma
tentativa rejeitada nunca chega ao diálogo de quantidade.

`FeedingSession` representa uma sessão de tela de registro (um operador):
carrega grade e sugestão, executa o backfill uma única vez por viveiro e
cria guardas com o contexto atual.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence, Set

from config.settings import EARLY_LOG_WINDOW_MINUTES, TIMEZONE
from aquafeed.domain.clock import Clock, utc_now
from aquafeed.domain.entities.feed_suggestion import FeedSuggestion
from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.feeding_schedule import TzLike, expand_today, local_date, resolve_tz
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.enums import BlockReason, GuardState
from aquafeed.domain.repositories.feeding_log_repository import IFeedingLogRepository
from aquafeed.domain.use_cases.backfill_missed_feeding_use_case import (
    BackfillMissedFeedingUseCase, BackfillResult,
)
from aquafeed.domain.use_cases.manage_schedule_use_case import LoadScheduleUseCase
from aquafeed.domain.use_cases.suggest_feed_use_case import SuggestFeedUseCase

log = logging.getLogger("aquafeed.usecases.submit")

# grava o registro: recebe (fed_at, gramas) e devolve o log persistido
LogWriter = Callable[[datetime, float], FeedingLog]


@dataclass(frozen=True)
class GuardContext:
    """Fotografia do viveiro no momento da tentativa."""
    now: datetime
    today_slots: Sequence[datetime]
    today_log_count: int
    feeding_frequency: int
    suggested_grams: Optional[int] = None
    early_window: timedelta = timedelta(minutes=EARLY_LOG_WINDOW_MINUTES)

    @property
    def next_slot(self) -> Optional[datetime]:
        """Primeiro horário de hoje ainda não passado."""
        upcoming = [s for s in self.today_slots if s > self.now]
        return min(upcoming) if upcoming else None


@dataclass(frozen=True)
class GuardDecision:
    """Estado resultante + mensagem legível para o operador."""
    state: GuardState
    message: str
    reason: Optional[BlockReason] = None
    minutes_early: Optional[int] = None
    log: Optional[FeedingLog] = None

    @property
    def needs_confirmation(self) -> bool:
        return self.state in (GuardState.PENDING_EARLY_CONFIRM, GuardState.PENDING_AMOUNT_CONFIRM)


class SubmissionGuard:
    """Máquina de estados de uma tentativa de registro manual."""

    def __init__(self, context: GuardContext, writer: LogWriter) -> None:
        self.context = context
        self.writer = writer
        self.state = GuardState.IDLE
        self._fed_at: Optional[datetime] = None
        self._grams: Optional[float] = None

    def submit(self, fed_at: datetime, grams: float) -> GuardDecision:
        """Avalia uma tentativa; pode gravar direto ou parar em um estado pendente/bloqueado."""
        if self.state in (GuardState.SUBMITTING, GuardState.DONE):
            raise RuntimeError(f"Tentativa já concluída (estado {self.state.name}).")

        ctx = self.context
        self.state = GuardState.VALIDATING
        self._fed_at, self._grams = fed_at, grams

        # 1) entrada
        if fed_at > ctx.now:
            return self._block(BlockReason.INVALID_INPUT,
                               "Não é possível registrar alimentação em data/hora futura.")
        if grams is None or not math.isfinite(grams) or grams <= 0:
            return self._block(BlockReason.INVALID_INPUT,
                               "A ração fornecida deve ser um número positivo de gramas.")
        # registro e comparação com a sugestão em gramas inteiras
        grams = int(math.floor(grams + 0.5))
        if grams <= 0:
            return self._block(BlockReason.INVALID_INPUT,
                               "A ração fornecida deve ser de pelo menos 1 g.")
        self._grams = grams

        # 2) limite diário
        if ctx.feeding_frequency >= 1 and ctx.today_log_count >= ctx.feeding_frequency:
            return self._block(BlockReason.DAILY_LIMIT_REACHED,
                               f"Limite diário atingido: {ctx.today_log_count} de "
                               f"{ctx.feeding_frequency} alimentações já registradas hoje.")

        # 3) antecedência em relação ao próximo horário
        nxt = ctx.next_slot
        if nxt is not None and fed_at <= ctx.now < nxt:
            ahead = nxt - ctx.now
            # antecedência do registro em relação ao horário (fed_at <= now)
            minutes = int(math.ceil((nxt - fed_at).total_seconds() / 60))
            if ahead > ctx.early_window:
                self.state = GuardState.PENDING_TOO_EARLY_REJECT
                return GuardDecision(
                    self.state,
                    f"Muito cedo: o próximo horário é daqui a "
                    f"{int(math.ceil(ahead.total_seconds() / 60))} min. "
                    f"Registre no máximo {int(ctx.early_window.total_seconds() // 60)} min antes.",
                    minutes_early=minutes,
                )
            self.state = GuardState.PENDING_EARLY_CONFIRM
            return GuardDecision(
                self.state,
                f"Alimentação {minutes} min antes do horário agendado. Deseja continuar?",
                minutes_early=minutes,
            )

        return self._amount_or_write()

    def confirm(self) -> GuardDecision:
        """Aceita o aviso pendente e segue para a próxima verificação."""
        if self.state is GuardState.PENDING_EARLY_CONFIRM:
            return self._amount_or_write()
        if self.state is GuardState.PENDING_AMOUNT_CONFIRM:
            return self._write()
        raise RuntimeError(f"Nada a confirmar no estado {self.state.name}.")

    def cancel(self) -> GuardDecision:
        """Descarta a tentativa pendente."""
        if self.state in (GuardState.SUBMITTING, GuardState.DONE):
            raise RuntimeError(f"Tentativa já concluída (estado {self.state.name}).")
        self.state = GuardState.IDLE
        self._fed_at = self._grams = None
        return GuardDecision(self.state, "Registro cancelado.")

    # ---------- helpers ----------
    def _block(self, reason: BlockReason, message: str) -> GuardDecision:
        self.state = GuardState.BLOCKED
        log.info("submission_blocked reason=%s", reason.value)
        return GuardDecision(self.state, message, reason=reason)

    def _amount_or_write(self) -> GuardDecision:
        suggested = self.context.suggested_grams
        if suggested is not None and float(self._grams) != float(suggested):
            self.state = GuardState.PENDING_AMOUNT_CONFIRM
            return GuardDecision(
                self.state,
                f"Você informou {self._grams:g} g, mas a sugestão é {suggested} g. Deseja continuar?",
            )
        return self._write()

    def _write(self) -> GuardDecision:
        self.state = GuardState.SUBMITTING
        try:
            saved = self.writer(self._fed_at, self._grams)
        except Exception:
            # volta ao início para o operador tentar de novo
            self.state = GuardState.IDLE
            raise
        self.state = GuardState.DONE
        return GuardDecision(self.state, "Alimentação registrada com sucesso!", log=saved)


class FeedingSession:
    """
    Sessão da tela de registro manual de um operador.

    - o backfill de horários perdidos roda no máximo uma vez por viveiro
      durante a sessão (trava de uso único, independente dos registros)
    - cada tentativa de registro recebe um `SubmissionGuard` com o contexto atual
    """

    def __init__(
        self,
        user: User,
        schedule_loader: LoadScheduleUseCase,
        suggest_feed: SuggestFeedUseCase,
        backfill: BackfillMissedFeedingUseCase,
        log_repo: IFeedingLogRepository,
        clock: Optional[Clock] = None,
        tz: TzLike = TIMEZONE,
    ) -> None:
        self.user = user
        self.schedule_loader = schedule_loader
        self.suggest_feed = suggest_feed
        self.backfill = backfill
        self.log_repo = log_repo
        self.clock = clock or utc_now
        self.tz = tz
        self._backfilled: Set[str] = set()

    def open(self, pond: Pond) -> BackfillResult:
        """
        Chamado quando a tela de registro do viveiro é aberta.

        Executa o backfill apenas na primeira abertura do viveiro na sessão;
        se o backfill falhar a trava não é acionada e a próxima abertura tenta de novo.
        """
        if pond.id in self._backfilled:
            return BackfillResult()
        schedule = self.schedule_loader.execute(pond)
        if schedule is None or not schedule.active:
            self._backfilled.add(pond.id)
            return BackfillResult()
        result = self.backfill.execute(schedule, pond, self.user, self.suggest_feed.execute(pond))
        self._backfilled.add(pond.id)
        return result

    def suggestion(self, pond: Pond) -> FeedSuggestion:
        return self.suggest_feed.execute(pond)

    def guard(self, pond: Pond) -> SubmissionGuard:
        """Cria a máquina de estados para uma nova tentativa no viveiro."""
        now = self.clock()
        today = local_date(now, self.tz)
        schedule = self.schedule_loader.execute(pond)
        slots = expand_today(schedule, today, self.tz) if schedule and schedule.active else []

        zone = resolve_tz(self.tz)
        day_start = datetime.combine(today, datetime.min.time(), tzinfo=zone)
        day_end = datetime.combine(today + timedelta(days=1), datetime.min.time(), tzinfo=zone)
        count = len(list(self.log_repo.list_between(pond.id, day_start, day_end)))

        context = GuardContext(
            now=now,
            today_slots=slots,
            today_log_count=count,
            feeding_frequency=pond.feeding_frequency,
            suggested_grams=self.suggest_feed.execute(pond).per_feeding_grams,
        )

        def write(fed_at: datetime, grams: float) -> FeedingLog:
            entry = FeedingLog.manual(
                pond_id=pond.id,
                fed_at=fed_at,
                grams=grams,
                user_id=self.user.id,
                pond_name=pond.name,
                user_email=self.user.email,
                user_display_name=self.user.display_name,
                now=self.clock(),
            )
            saved = self.log_repo.add(entry)
            log.info("feeding_logged pond=%s user=%s grams=%s fed_at=%s",
                     pond.id, self.user.id, grams, fed_at.isoformat())
            return saved

        return SubmissionGuard(context, write)
