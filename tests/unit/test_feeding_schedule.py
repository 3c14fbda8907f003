from datetime import date, timezone

import pytest

from aquafeed.domain.entities.feeding_schedule import (
    FeedingSchedule, expand_today, realign, regenerate_times, weekday_index,
)
from aquafeed.domain.enums import RepeatType
from aquafeed.domain.exceptions import ValidationError
from aquafeed.domain.value_objects import TimeOfDay

from fakes import TZ, at

FRIDAY = date(2024, 5, 10)


def _schedule(**kw) -> FeedingSchedule:
    data = dict(pond_id="p1", pond_name="Viveiro 1", times_of_day=("17:00", "08:00"),
                times_per_day=2, start_date=date(2024, 5, 1))
    data.update(kw)
    return FeedingSchedule(**data)


def test_time_of_day_parse_e_formato():
    t = TimeOfDay.parse("07:05")
    assert (t.hour, t.minute) == (7, 5)
    assert str(t) == "07:05"
    assert TimeOfDay.parse("08:00") < TimeOfDay.parse("17:00")


@pytest.mark.parametrize("raw", ["7:00", "24:00", "12:60", "", "ab:cd"])
def test_time_of_day_invalido(raw):
    with pytest.raises(ValidationError):
        TimeOfDay.parse(raw)


def test_quantidade_de_horarios_deve_bater_com_times_per_day():
    with pytest.raises(ValidationError):
        _schedule(times_per_day=3)


def test_expand_today_ordena_e_converte_para_utc():
    slots = expand_today(_schedule(), FRIDAY, TZ)
    assert slots == [at(FRIDAY, 8), at(FRIDAY, 17)]
    assert all(s.tzinfo == timezone.utc for s in slots)
    # Manila = UTC+8
    assert slots[0].hour == 0


def test_expand_today_respeita_vigencia():
    s = _schedule(start_date=date(2024, 5, 11), end_date=date(2024, 5, 20))
    assert expand_today(s, FRIDAY, TZ) == []
    assert expand_today(s, date(2024, 5, 20), TZ) != []
    assert expand_today(s, date(2024, 5, 21), TZ) == []


def test_grade_semanal_usa_domingo_como_zero():
    sunday = date(2024, 5, 12)
    assert weekday_index(sunday) == 0
    assert weekday_index(FRIDAY) == 5

    s = _schedule(repeat_type=RepeatType.WEEKLY, selected_days=frozenset({0}))
    assert expand_today(s, sunday, TZ) == [at(sunday, 8), at(sunday, 17)]
    assert expand_today(s, FRIDAY, TZ) == []


def test_regenerate_times():
    assert regenerate_times(0) == []
    assert regenerate_times(1) == ["17:00"]
    assert regenerate_times(2) == ["07:00", "17:00"]
    assert regenerate_times(3) == ["07:00", "12:00", "17:00"]
    assert regenerate_times(4) == ["07:00", "10:20", "13:40", "17:00"]
    for n in range(2, 13):
        times = regenerate_times(n)
        assert len(times) == n and times[-1] == "17:00"


def test_realign_so_quando_a_frequencia_muda():
    s = _schedule()
    assert realign(s, 2) is s
    assert realign(s, 0) is s
    assert realign(s, None) is s

    r = realign(s, 3)
    assert r.times_per_day == 3
    assert r.time_labels == ["07:00", "12:00", "17:00"]
    # demais campos preservados
    assert (r.pond_id, r.start_date, r.repeat_type) == (s.pond_id, s.start_date, s.repeat_type)
