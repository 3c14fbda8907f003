# aquafeed/domain/use_cases/manage_schedule_use_case.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Sequence, FrozenSet
import logging

from aquafeed.domain.clock import Clock, utc_now
from aquafeed.domain.entities.feeding_schedule import Actor, FeedingSchedule, realign
from aquafeed.domain.entities.pond import Pond
from aquafeed.domain.enums import RepeatType
from aquafeed.domain.exceptions import ValidationError
from aquafeed.domain.repositories.schedule_repository import IScheduleRepository
from aquafeed.domain.value_objects import TimeOfDay

log = logging.getLogger("aquafeed.usecases.schedule")

@dataclass(frozen=True)
class ScheduleInput:
    """
    Dados informados pelo gerente ao criar/editar a grade.

    Atributos:
        pond_id / pond_name: viveiro alvo.
        times_per_day: alimentações por dia.
        feeding_times: horários "HH:MM" (mesma quantidade de times_per_day).
        repeat_type: DAILY ou WEEKLY.
        selected_days: dias (0 = domingo) quando WEEKLY.
        start_date / end_date: vigência.
    """
    pond_id: str
    pond_name: str
    times_per_day: int
    feeding_times: Sequence[str]
    start_date: date
    repeat_type: RepeatType = RepeatType.DAILY
    selected_days: FrozenSet[int] = field(default_factory=frozenset)
    end_date: Optional[date] = None

class UpsertScheduleUseCase:
    """
    Cria OU atualiza a grade única do viveiro (id = pond_id).

    - valida os dados antes de qualquer escrita
    - na criação registra `created_by`; na edição preserva o criador
    - sempre grava a grade como ativa
    """

    def __init__(self, schedule_repo: IScheduleRepository, clock: Optional[Clock] = None) -> None:
        self.schedule_repo = schedule_repo
        self.clock = clock or utc_now

    def execute(self, actor: Actor, data: ScheduleInput) -> FeedingSchedule:
        """
        Valida e grava a grade.

        Raises:
            ValidationError: dados inconsistentes (mensagem pronta para o usuário).
        """
        self._validate(data)
        now = self.clock()
        current = self.schedule_repo.get_by_pond(data.pond_id)

        schedule = FeedingSchedule(
            pond_id=data.pond_id,
            pond_name=data.pond_name,
            times_of_day=tuple(TimeOfDay.parse(t) for t in data.feeding_times),
            times_per_day=data.times_per_day,
            repeat_type=data.repeat_type,
            # grade diária não guarda dias
            selected_days=data.selected_days if data.repeat_type is RepeatType.WEEKLY else frozenset(),
            start_date=data.start_date,
            end_date=data.end_date,
            active=True,
            created_by=current.created_by if current else actor,
            last_updated_by=actor,
            created_at=current.created_at if current else now,
            updated_at=now,
        )
        self.schedule_repo.save(schedule)
        log.info("schedule_%s pond=%s times=%s repeat=%s by=%s",
                 "updated" if current else "created", data.pond_id,
                 ",".join(schedule.time_labels), data.repeat_type.value, actor.user_id)
        return schedule

    @staticmethod
    def _validate(data: ScheduleInput) -> None:
        if not str(data.pond_id or "").strip():
            raise ValidationError("pond_id é obrigatório.")
        if not str(data.pond_name or "").strip():
            raise ValidationError("pond_name é obrigatório.")
        if data.times_per_day < 1 or len(data.feeding_times) != data.times_per_day:
            raise ValidationError("A quantidade de horários deve ser igual a alimentações por dia.")
        for t in data.feeding_times:
            TimeOfDay.parse(t)
        if data.repeat_type is RepeatType.WEEKLY:
            if not data.selected_days:
                raise ValidationError("Grade semanal exige ao menos um dia selecionado.")
            if any(not (0 <= d <= 6) for d in data.selected_days):
                raise ValidationError("Dias da semana devem estar entre 0 (domingo) e 6 (sábado).")
        if data.end_date and data.end_date < data.start_date:
            raise ValidationError("A data final não pode ser anterior à data inicial.")

class DeactivateScheduleUseCase:
    """Desativa (soft) a grade do viveiro; viveiro sem grade é no-op."""

    def __init__(self, schedule_repo: IScheduleRepository, clock: Optional[Clock] = None) -> None:
        self.schedule_repo = schedule_repo
        self.clock = clock or utc_now

    def execute(self, pond_id: str) -> Optional[FeedingSchedule]:
        current = self.schedule_repo.get_by_pond(pond_id)
        if current is None:
            return None
        updated = replace(current, active=False, updated_at=self.clock())
        self.schedule_repo.save(updated)
        log.info("schedule_deactivated pond=%s", pond_id)
        return updated

class LoadScheduleUseCase:
    """
    Lê a grade do viveiro aplicando a migração na leitura:
    se a frequência de alimentação do viveiro mudou, os horários são
    regenerados (07:00 … 17:00) e a grade realinhada é persistida.
    """

    def __init__(self, schedule_repo: IScheduleRepository, clock: Optional[Clock] = None) -> None:
        self.schedule_repo = schedule_repo
        self.clock = clock or utc_now

    def execute(self, pond: Pond) -> Optional[FeedingSchedule]:
        """
        Returns:
            A grade (já realinhada) ou None se o viveiro ainda não tem grade.
        """
        schedule = self.schedule_repo.get_by_pond(pond.id)
        if schedule is None:
            log.debug("schedule_missing pond=%s", pond.id)
            return None

        aligned = realign(schedule, pond.feeding_frequency)
        if aligned is not schedule:
            aligned = replace(aligned, updated_at=self.clock())
            self.schedule_repo.save(aligned)
            log.info("schedule_realigned pond=%s from=%s to=%s",
                     pond.id, ",".join(schedule.time_labels), ",".join(aligned.time_labels))
        return aligned
