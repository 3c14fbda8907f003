# tests/unit/test_sqlite_repositories.py
from __future__ import annotations
import sqlite3
from datetime import date, timedelta

import pytest

from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.feeding_schedule import Actor, FeedingSchedule
from aquafeed.domain.entities.reminder_marker import ReminderMarker
from aquafeed.domain.enums import DispatchStatus, FeedingReason, RepeatType
from aquafeed.domain.exceptions import ThrottledError, ValidationError
from aquafeed.infrastructure.container import build_dispatcher
from aquafeed.infrastructure.database.migrations import get_executed_migrations, run_migrations
from aquafeed.infrastructure.database.sqlite_repositories import (
    DatabaseManager, SQLiteFeedingLogRepo, SQLiteGrowthRepo, SQLitePondRepo,
    SQLiteReminderMarkerRepo, SQLiteScheduleRepo, SQLiteUserRepo,
)

from fakes import TZ, FakeNotifier, at, fixed_clock

DAY = date(2024, 5, 10)


@pytest.fixture
def db(tmp_path):
    path = str(tmp_path / "aquafeed.db")
    run_migrations(path)
    with sqlite3.connect(path) as con:
        con.executemany("INSERT INTO users (id, email, display_name, status) VALUES (?, ?, ?, ?)", [
            ("u1", "ana@fazenda.ph", "Ana", "approved"),
            ("u2", "beto@fazenda.ph", None, "pending"),
        ])
        con.execute("INSERT INTO ponds (id, name, fish_count, feeding_frequency) VALUES ('p1', 'Viveiro 1', 300, 2)")
        con.executemany("INSERT INTO user_ponds (user_id, pond_id) VALUES (?, ?)", [("u1", "p1"), ("u2", "p1")])
        con.execute("INSERT INTO growth_setups (pond_id, current_abw) VALUES ('p1', 10.0)")
        con.executemany("INSERT INTO mortality_logs (pond_id, mortality_rate) VALUES (?, ?)",
                        [("p1", 5.0), ("p1", 2.5), ("p1", None)])
    return path


def _schedule(**kw) -> FeedingSchedule:
    data = dict(pond_id="p1", pond_name="Viveiro 1", times_of_day=("08:00", "17:00"), times_per_day=2,
                start_date=date(2024, 5, 1), created_by=Actor("m1", "gerente@fazenda.ph"),
                created_at=at(DAY, 6), updated_at=at(DAY, 6))
    data.update(kw)
    return FeedingSchedule(**data)


def test_migrations_sao_idempotentes(db):
    before = get_executed_migrations(db)
    run_migrations(db)
    assert get_executed_migrations(db) == before
    assert before[0] == "001" and len(before) == 10


def test_grade_gravada_e_lida(db):
    repo = SQLiteScheduleRepo(db)
    assert repo.get_by_pond("p1") is None
    s = _schedule(repeat_type=RepeatType.WEEKLY, selected_days=frozenset({0, 3}), end_date=date(2024, 6, 1))
    repo.save(s)
    assert repo.get_by_pond("p1") == s

    repo.save(_schedule(active=False))
    assert repo.get_by_pond("p1").active is False


def test_grade_malformada_vira_validation_error(db):
    with sqlite3.connect(db) as con:
        con.execute(
            "INSERT INTO feeding_schedules (pond_id, pond_name, times_of_day, times_per_day, start_date) "
            "VALUES ('p1', 'Viveiro 1', '[\"25:00\"]', 1, '2024-05-01')"
        )
    with pytest.raises(ValidationError):
        SQLiteScheduleRepo(db).get_by_pond("p1")


def test_registros_por_intervalo_e_ordem(db):
    repo = SQLiteFeedingLogRepo(db)
    saved = repo.add(FeedingLog.manual("p1", at(DAY, 8, 5), 150, "u1", now=at(DAY, 8, 6)))
    assert saved.id is not None
    repo.add(FeedingLog.missed_schedule("p1", at(DAY, 17), 150, "u1", now=at(DAY, 18)))
    repo.add(FeedingLog.manual("p1", at(DAY - timedelta(days=1), 17), 150, "u1", now=at(DAY, 18)))

    all_logs = repo.list_by_pond("p1")
    assert [l.fed_at for l in all_logs] == [at(DAY, 17), at(DAY, 8, 5), at(DAY - timedelta(days=1), 17)]
    assert all_logs[0].reason is FeedingReason.MISSED_SCHEDULE and all_logs[0].auto_logged

    today = repo.list_between("p1", at(DAY, 0), at(DAY + timedelta(days=1), 0))
    assert len(today) == 2


def test_marcador_e_criado_uma_unica_vez(db):
    repo = SQLiteReminderMarkerRepo(db)
    m = ReminderMarker(schedule_id="p1", slot_date=DAY, time_label="08:00", user_id="u1",
                       scheduled_at=at(DAY, 8), pond_id="p1", email="ana@fazenda.ph")
    assert repo.exists("p1", m.key) is False
    assert repo.create(m) is True
    assert repo.create(m) is False
    assert repo.exists("p1", "2024-05-10_08:00_u1") is True
    repo.release("p1", m.key)
    assert repo.count() == 0


def test_usuarios_viveiros_e_crescimento(db):
    assert [u.id for u in SQLiteUserRepo(db).list_approved()] == ["u1"]
    ponds = SQLitePondRepo(db).list_for_user("u1")
    assert [(p.id, p.fish_count, p.feeding_frequency) for p in ponds] == [("p1", 300, 2)]
    assert SQLitePondRepo(db).get("p404") is None

    growth = SQLiteGrowthRepo(db)
    assert growth.get_current_abw("p1") == 10.0
    assert growth.get_current_abw("p2") is None
    assert growth.get_survival_percent("p1") == 92.5


def test_lock_do_sqlite_vira_throttled(db):
    with pytest.raises(ThrottledError):
        with DatabaseManager(db):
            raise sqlite3.OperationalError("database is locked")


def test_disparador_completo_no_sqlite(db):
    SQLiteScheduleRepo(db).save(_schedule())
    notifier = FakeNotifier()
    dispatcher = build_dispatcher(db_path=db, notifier=notifier, clock=fixed_clock(at(DAY, 7, 30)), tz=TZ)

    first = dispatcher.execute()
    second = dispatcher.execute()

    assert first.status is DispatchStatus.OK and first.sent == 1
    assert second.sent == 0 and second.skipped == 1
    assert SQLiteReminderMarkerRepo(db).count("p1") == 1
    recipient, subject, body = notifier.sent[0]
    assert recipient == "ana@fazenda.ph"
    # 10 g × round(92,5% de 300) = 278 vivos → 0,278 kg/dia → 139 g por alimentação
    assert "139 g" in body
