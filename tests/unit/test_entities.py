from datetime import date, datetime, timedelta, timezone

import pytest

from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.entities.reminder_marker import ReminderMarker, reminder_key
from aquafeed.domain.enums import FeedingReason, UserStatus
from aquafeed.domain.exceptions import AquafeedError, ValidationError

NOW = datetime(2024, 5, 10, 4, 0, tzinfo=timezone.utc)


def test_registro_manual():
    log = FeedingLog.manual("p1", NOW - timedelta(minutes=5), 120.0, "u1", pond_name="V1", now=NOW)
    assert log.reason is FeedingReason.MANUAL
    assert log.auto_logged is False
    assert log.scheduled_for is None
    assert log.created_at == NOW


def test_registro_naive_e_tratado_como_utc():
    log = FeedingLog("p1", datetime(2024, 5, 10, 3, 0), 10.0, "u1", created_at=NOW)
    assert log.fed_at.tzinfo == timezone.utc


@pytest.mark.parametrize("grams", [0, -1, float("nan")])
def test_registro_quantidade_invalida(grams):
    with pytest.raises(ValidationError):
        FeedingLog.manual("p1", NOW, grams, "u1", now=NOW)


def test_registro_no_futuro_e_invalido():
    with pytest.raises(ValidationError):
        FeedingLog.manual("p1", NOW + timedelta(seconds=1), 10.0, "u1", now=NOW)


def test_validation_error_e_value_error():
    with pytest.raises(ValueError):
        Pond(id="p1", name="V", fish_count=-1)
    assert issubclass(ValidationError, AquafeedError)


def test_chave_do_lembrete():
    assert reminder_key("2024-05-10", "08:00", "u1") == "2024-05-10_08:00_u1"
    m = ReminderMarker(schedule_id="p1", slot_date=date(2024, 5, 10), time_label="08:00",
                       user_id="u1", scheduled_at=NOW)
    assert m.key == "2024-05-10_08:00_u1"
    assert m.created_at is not None


def test_usuario_aprovado():
    assert User("u1", "a@b.c").is_approved
    assert not User("u2", "a@b.c", status=UserStatus.BLOCKED).is_approved
