"""
Grade de alimentação de um viveiro e sua expansão em horários concretos.

Este módulo define a entidade imutável `FeedingSchedule` (uma por viveiro,
compartilhada por todos os usuários do viveiro) e as funções puras que a
transformam nos instantes de alimentação de um dia.

Princípios e invariantes adotados
---------------------------------
- **Singleton por viveiro**: o id da grade é o próprio `pond_id`.
- **Consistência**: `len(times_of_day) == times_per_day`, validado no
  `__post_init__`.
- **Fuso fixo**: os horários "HH:MM" são sempre interpretados no fuso
  configurado (`config.settings.TIMEZONE`); os instantes retornados são
  timezone-aware em UTC.
- **Realinhamento determinístico**: quando a frequência de alimentação do
  viveiro muda, os horários são regenerados entre 07:00 e 17:00 com o último
  horário fixo em 17:00 (ver `regenerate_times` e `realign`).
- **Funções puras não levantam erro** por falta de dado: uma grade fora do
  período ou fora do dia da semana simplesmente não produz horários.

Dias da semana usam o índice 0 = domingo … 6 = sábado.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone, tzinfo
from typing import FrozenSet, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

import numpy as np

from config.settings import DEFAULT_FIRST_FEEDING, DEFAULT_LAST_FEEDING, TIMEZONE
from aquafeed.domain.enums import RepeatType
from aquafeed.domain.exceptions import ValidationError
from aquafeed.domain.value_objects import TimeOfDay

TzLike = Union[str, tzinfo]


@dataclass(frozen=True)
class Actor:
    """Usuário responsável por uma alteração (campos de auditoria)."""
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class FeedingSchedule:
    """
    Grade de alimentação declarativa de um viveiro.

    Attributes:
        pond_id: Viveiro dono da grade (também é o id da grade).
        pond_name: Nome de exibição do viveiro (desnormalizado).
        times_of_day: Horários "HH:MM" em ordem; aceita strings na criação.
        times_per_day: Quantidade de alimentações por dia (>= 1).
        repeat_type: DAILY ou WEEKLY.
        selected_days: Dias da semana (0 = domingo) quando WEEKLY.
        start_date: Primeiro dia de vigência.
        end_date: Último dia de vigência (opcional).
        active: False quando a grade foi desativada.
        created_by / last_updated_by: auditoria.
    """

    pond_id: str
    pond_name: str
    times_of_day: Tuple[TimeOfDay, ...]
    times_per_day: int
    start_date: date
    repeat_type: RepeatType = RepeatType.DAILY
    selected_days: FrozenSet[int] = field(default_factory=frozenset)
    end_date: Optional[date] = None
    active: bool = True
    created_by: Optional[Actor] = None
    last_updated_by: Optional[Actor] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        # `dataclass(frozen=True)` impede atribuição direta; usa-se `object.__setattr__`.
        times = tuple(
            t if isinstance(t, TimeOfDay) else TimeOfDay.parse(t) for t in self.times_of_day
        )
        object.__setattr__(self, "times_of_day", times)
        object.__setattr__(self, "selected_days", frozenset(int(d) for d in self.selected_days))

        if not str(self.pond_id).strip():
            raise ValidationError("pond_id é obrigatório.")
        if self.times_per_day < 1:
            raise ValidationError("times_per_day deve ser >= 1.")
        if len(times) != self.times_per_day:
            raise ValidationError(
                f"Quantidade de horários ({len(times)}) difere de times_per_day ({self.times_per_day})."
            )
        if any(not (0 <= d <= 6) for d in self.selected_days):
            raise ValidationError(f"Dias da semana inválidos: {sorted(self.selected_days)}")

    @property
    def id(self) -> str:
        return self.pond_id

    @property
    def time_labels(self) -> List[str]:
        """Horários como strings "HH:MM", na ordem armazenada."""
        return [str(t) for t in self.times_of_day]


# -----------------------------------------------------------------------------
# Funções puras
# -----------------------------------------------------------------------------

def resolve_tz(tz: TzLike) -> tzinfo:
    return ZoneInfo(tz) if isinstance(tz, str) else tz


def weekday_index(d: date) -> int:
    """Índice do dia da semana com domingo = 0 (Python usa segunda = 0)."""
    return (d.weekday() + 1) % 7


def local_date(instant: datetime, tz: TzLike = TIMEZONE) -> date:
    """Data civil de um instante no fuso informado (naive é tratado como UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_tz(tz)).date()


def slot_instant(reference_date: date, time_of_day: TimeOfDay, tz: TzLike = TIMEZONE) -> datetime:
    """Instante (UTC) de um horário local em uma data."""
    local = datetime.combine(reference_date, time_of_day.to_time(), tzinfo=resolve_tz(tz))
    return local.astimezone(timezone.utc)


def is_scheduled_on(schedule: FeedingSchedule, reference_date: date) -> bool:
    """True se a grade gera horários na data (período de vigência + dia da semana)."""
    if reference_date < schedule.start_date:
        return False
    if schedule.end_date is not None and reference_date > schedule.end_date:
        return False
    if schedule.repeat_type is RepeatType.WEEKLY:
        return weekday_index(reference_date) in schedule.selected_days
    return True


def expand_today(schedule: FeedingSchedule, reference_date: date, tz: TzLike = TIMEZONE) -> List[datetime]:
    """
    Expande a grade nos instantes de alimentação da data de referência.

    Returns:
        Lista ordenada (crescente) de instantes UTC; vazia se a data estiver
        fora da vigência ou, em grade semanal, fora dos dias selecionados.
    """
    if not is_scheduled_on(schedule, reference_date):
        return []
    return sorted(slot_instant(reference_date, t, tz) for t in schedule.times_of_day)


def regenerate_times(n: int) -> List[str]:
    """
    Gera `n` horários igualmente espaçados entre 07:00 e 17:00 (inclusive).

    Os valores são arredondados ao minuto e o último é fixado em 17:00
    independente do arredondamento. `n == 1` resulta em ["17:00"].
    """
    if n <= 0:
        return []
    first = TimeOfDay.parse(DEFAULT_FIRST_FEEDING).minutes
    last = TimeOfDay.parse(DEFAULT_LAST_FEEDING).minutes
    if n == 1:
        return [str(TimeOfDay(last))]
    minutes = np.rint(np.linspace(first, last, n)).astype(int).tolist()
    minutes[-1] = last
    return [str(TimeOfDay(m)) for m in minutes]


def realign(schedule: FeedingSchedule, feeding_frequency: Optional[int]) -> FeedingSchedule:
    """
    Regra de migração na leitura: se a frequência do viveiro mudou, regenera a grade.

    Retorna a mesma instância quando a frequência é desconhecida, < 1 ou igual
    a `times_per_day`.
    """
    if not feeding_frequency or feeding_frequency < 1 or feeding_frequency == schedule.times_per_day:
        return schedule
    return replace(
        schedule,
        times_of_day=tuple(TimeOfDay.parse(t) for t in regenerate_times(feeding_frequency)),
        times_per_day=feeding_frequency,
    )
