from datetime import date

import pytest

from aquafeed.domain.entities.feeding_schedule import Actor, FeedingSchedule
from aquafeed.domain.entities.pond import Pond
from aquafeed.domain.enums import RepeatType
from aquafeed.domain.exceptions import ValidationError
from aquafeed.domain.use_cases.manage_schedule_use_case import (
    DeactivateScheduleUseCase, LoadScheduleUseCase, ScheduleInput, UpsertScheduleUseCase,
)

from fakes import FakeScheduleRepo, at, fixed_clock

DAY = date(2024, 5, 10)
GERENTE = Actor(user_id="m1", email="gerente@fazenda.ph")
OUTRO = Actor(user_id="m2")


def _input(**kw) -> ScheduleInput:
    data = dict(pond_id="p1", pond_name="Viveiro 1", times_per_day=2,
                feeding_times=["08:00", "17:00"], start_date=DAY)
    data.update(kw)
    return ScheduleInput(**data)


def test_criacao_e_edicao_preservam_o_criador():
    repo = FakeScheduleRepo()
    created = UpsertScheduleUseCase(repo, clock=fixed_clock(at(DAY, 9))).execute(GERENTE, _input())
    assert created.created_by == GERENTE
    assert created.active is True
    assert created.created_at == at(DAY, 9)

    updated = UpsertScheduleUseCase(repo, clock=fixed_clock(at(DAY, 10))).execute(
        OUTRO, _input(times_per_day=3, feeding_times=["07:00", "12:00", "17:00"]))
    assert updated.created_by == GERENTE
    assert updated.last_updated_by == OUTRO
    assert updated.created_at == at(DAY, 9)
    assert updated.updated_at == at(DAY, 10)
    assert repo.get_by_pond("p1").time_labels == ["07:00", "12:00", "17:00"]


def test_edicao_reativa_grade_desativada():
    repo = FakeScheduleRepo()
    UpsertScheduleUseCase(repo).execute(GERENTE, _input())
    DeactivateScheduleUseCase(repo).execute("p1")
    assert repo.get_by_pond("p1").active is False
    assert UpsertScheduleUseCase(repo).execute(GERENTE, _input()).active is True


def test_grade_diaria_descarta_dias_selecionados():
    s = UpsertScheduleUseCase(FakeScheduleRepo()).execute(GERENTE, _input(selected_days=frozenset({1, 3})))
    assert s.selected_days == frozenset()


@pytest.mark.parametrize("kw", [
    dict(pond_id=" "),
    dict(pond_name=""),
    dict(times_per_day=3),
    dict(feeding_times=["8:00", "17:00"]),
    dict(repeat_type=RepeatType.WEEKLY),
    dict(repeat_type=RepeatType.WEEKLY, selected_days=frozenset({7})),
    dict(end_date=date(2024, 5, 9)),
])
def test_validacoes_da_grade(kw):
    repo = FakeScheduleRepo()
    with pytest.raises(ValidationError):
        UpsertScheduleUseCase(repo).execute(GERENTE, _input(**kw))
    assert repo.saves == 0


def test_desativar_viveiro_sem_grade_e_noop():
    repo = FakeScheduleRepo()
    assert DeactivateScheduleUseCase(repo).execute("p404") is None
    assert repo.saves == 0


def test_leitura_realinha_e_persiste_quando_a_frequencia_muda():
    schedule = FeedingSchedule(pond_id="p1", pond_name="Viveiro 1", times_of_day=("08:00", "17:00"),
                               times_per_day=2, start_date=DAY)
    repo = FakeScheduleRepo(schedule)
    loader = LoadScheduleUseCase(repo, clock=fixed_clock(at(DAY, 9)))

    same = loader.execute(Pond("p1", "Viveiro 1", 100, 2))
    assert same is schedule and repo.saves == 0

    aligned = loader.execute(Pond("p1", "Viveiro 1", 100, 1))
    assert aligned.time_labels == ["17:00"]
    assert aligned.updated_at == at(DAY, 9)
    assert repo.saves == 1
    assert repo.get_by_pond("p1").times_per_day == 1


def test_leitura_sem_grade():
    assert LoadScheduleUseCase(FakeScheduleRepo()).execute(Pond("p1", "V", 0, 2)) is None
