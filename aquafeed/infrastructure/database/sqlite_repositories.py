# implementação concreta de como salvar/buscar os dados no sqlite
# os instantes são gravados como texto ISO-8601 em UTC, sempre com o mesmo
# formato, para que a comparação de strings no SQL siga a ordem cronológica
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import List, Optional

from config.database import DATABASE_PATH, DATABASE_TIMEOUT
from aquafeed.domain.entities.feed_suggestion import survival_percent_from_mortality
from aquafeed.domain.entities.feeding_log import FeedingLog
from aquafeed.domain.entities.feeding_schedule import Actor, FeedingSchedule
from aquafeed.domain.entities.pond import Pond, User
from aquafeed.domain.entities.reminder_marker import ReminderMarker
from aquafeed.domain.enums import FeedingReason, RepeatType, UserStatus
from aquafeed.domain.exceptions import ThrottledError, ValidationError

log = logging.getLogger("aquafeed.infrastructure.sqlite")

_BUSY_MESSAGES = ("database is locked", "database is busy", "database table is locked")


def _is_busy(err: BaseException) -> bool:
    return isinstance(err, sqlite3.OperationalError) and any(m in str(err).lower() for m in _BUSY_MESSAGES)


class DatabaseManager:
    """
    Conexão sqlite por bloco `with`.

    - commit ao sair sem erro, rollback caso contrário
    - lock/busy do sqlite vira `ThrottledError` (o chamador decide se para ou re-tenta)
    """

    def __init__(self, db_path: Optional[str] = None, timeout: float = DATABASE_TIMEOUT):
        self.db_path = str(db_path or DATABASE_PATH)
        self.timeout = timeout
        self.conexao: Optional[sqlite3.Connection] = None

    def __enter__(self) -> sqlite3.Connection:
        try:
            self.conexao = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.OperationalError as e:
            if _is_busy(e):
                raise ThrottledError(str(e), detail={"db": self.db_path}) from e
            raise
        self.conexao.row_factory = sqlite3.Row
        return self.conexao

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conexao is None:
            return False
        try:
            if exc_type is None:
                self.conexao.commit()
            else:
                self.conexao.rollback()
        finally:
            self.conexao.close()
            self.conexao = None
        if exc_val is not None and _is_busy(exc_val):
            log.warning("sqlite_busy db=%s err=%s", self.db_path, exc_val)
            raise ThrottledError(str(exc_val), detail={"db": self.db_path}) from exc_val
        return False


# ---------- conversões texto ↔ domínio ----------

def _ts(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _actor_to_json(actor: Optional[Actor]) -> Optional[str]:
    if actor is None:
        return None
    return json.dumps({"user_id": actor.user_id, "email": actor.email, "display_name": actor.display_name})


def _actor_from_json(raw: Optional[str]) -> Optional[Actor]:
    if not raw:
        return None
    data = json.loads(raw)
    return Actor(user_id=data["user_id"], email=data.get("email"), display_name=data.get("display_name"))


class SQLiteScheduleRepo:
    """Grades de alimentação (uma linha por viveiro)."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def get_by_pond(self, pond_id: str) -> Optional[FeedingSchedule]:
        with DatabaseManager(self.db_path) as con:
            row = con.execute("SELECT * FROM feeding_schedules WHERE pond_id = ?", (pond_id,)).fetchone()
        if row is None:
            return None
        return self._to_entity(row)

    def save(self, schedule: FeedingSchedule) -> None:
        with DatabaseManager(self.db_path) as con:
            con.execute(
                """
                INSERT OR REPLACE INTO feeding_schedules
                    (pond_id, pond_name, times_of_day, times_per_day, repeat_type, selected_days,
                     start_date, end_date, active, created_by, last_updated_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    schedule.pond_id,
                    schedule.pond_name,
                    json.dumps(schedule.time_labels),
                    schedule.times_per_day,
                    schedule.repeat_type.value,
                    json.dumps(sorted(schedule.selected_days)),
                    schedule.start_date.isoformat(),
                    schedule.end_date.isoformat() if schedule.end_date else None,
                    1 if schedule.active else 0,
                    _actor_to_json(schedule.created_by),
                    _actor_to_json(schedule.last_updated_by),
                    _ts(schedule.created_at),
                    _ts(schedule.updated_at),
                ),
            )

    @staticmethod
    def _to_entity(row: sqlite3.Row) -> FeedingSchedule:
        # documento malformado não pode virar NaN/None silencioso mais adiante
        try:
            return FeedingSchedule(
                pond_id=row["pond_id"],
                pond_name=row["pond_name"],
                times_of_day=tuple(json.loads(row["times_of_day"])),
                times_per_day=int(row["times_per_day"]),
                repeat_type=RepeatType(row["repeat_type"]),
                selected_days=frozenset(json.loads(row["selected_days"] or "[]")),
                start_date=date.fromisoformat(row["start_date"]),
                end_date=date.fromisoformat(row["end_date"]) if row["end_date"] else None,
                active=bool(row["active"]),
                created_by=_actor_from_json(row["created_by"]),
                last_updated_by=_actor_from_json(row["last_updated_by"]),
                created_at=_parse_ts(row["created_at"]),
                updated_at=_parse_ts(row["updated_at"]),
            )
        except (ValueError, TypeError, KeyError) as e:
            raise ValidationError(
                f"Grade armazenada inválida para o viveiro {row['pond_id']}: {e}",
                detail={"pond_id": row["pond_id"]},
            ) from e


class SQLiteFeedingLogRepo:
    """Registros de alimentação (append-only)."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def add(self, entry: FeedingLog) -> FeedingLog:
        with DatabaseManager(self.db_path) as con:
            cur = con.execute(
                """
                INSERT INTO feeding_logs
                    (pond_id, pond_name, fed_at, feed_given_grams, user_id, user_email,
                     user_display_name, reason, auto_logged, scheduled_for, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.pond_id, entry.pond_name, _ts(entry.fed_at), float(entry.feed_given_grams),
                    entry.user_id, entry.user_email, entry.user_display_name, entry.reason.value,
                    1 if entry.auto_logged else 0, _ts(entry.scheduled_for), _ts(entry.created_at),
                ),
            )
            new_id = cur.lastrowid
        return replace(entry, id=new_id)

    def list_by_pond(self, pond_id: str) -> List[FeedingLog]:
        with DatabaseManager(self.db_path) as con:
            rows = con.execute(
                "SELECT * FROM feeding_logs WHERE pond_id = ? ORDER BY fed_at DESC, id DESC", (pond_id,)
            ).fetchall()
        return [self._to_entity(r) for r in rows]

    def list_between(self, pond_id: str, start: datetime, end: datetime) -> List[FeedingLog]:
        with DatabaseManager(self.db_path) as con:
            rows = con.execute(
                """
                SELECT * FROM feeding_logs
                WHERE pond_id = ? AND fed_at >= ? AND fed_at < ?
                ORDER BY fed_at DESC, id DESC
                """,
                (pond_id, _ts(start), _ts(end)),
            ).fetchall()
        return [self._to_entity(r) for r in rows]

    @staticmethod
    def _to_entity(row: sqlite3.Row) -> FeedingLog:
        return FeedingLog(
            id=row["id"],
            pond_id=row["pond_id"],
            pond_name=row["pond_name"] or "",
            fed_at=_parse_ts(row["fed_at"]),
            feed_given_grams=float(row["feed_given_grams"]),
            user_id=row["user_id"],
            user_email=row["user_email"],
            user_display_name=row["user_display_name"],
            reason=FeedingReason(row["reason"]),
            auto_logged=bool(row["auto_logged"]),
            scheduled_for=_parse_ts(row["scheduled_for"]),
            created_at=_parse_ts(row["created_at"]),
        )


class SQLiteReminderMarkerRepo:
    """Marcadores de lembrete; a PK (schedule_id, marker_key) torna a criação atômica."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def exists(self, schedule_id: str, key: str) -> bool:
        with DatabaseManager(self.db_path) as con:
            row = con.execute(
                "SELECT 1 FROM reminder_markers WHERE schedule_id = ? AND marker_key = ?", (schedule_id, key)
            ).fetchone()
        return row is not None

    def create(self, marker: ReminderMarker) -> bool:
        with DatabaseManager(self.db_path) as con:
            cur = con.execute(
                """
                INSERT OR IGNORE INTO reminder_markers
                    (schedule_id, marker_key, slot_date, time_label, user_id, scheduled_at,
                     pond_id, pond_name, email, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    marker.schedule_id, marker.key, marker.slot_date.isoformat(), marker.time_label,
                    marker.user_id, _ts(marker.scheduled_at), marker.pond_id, marker.pond_name,
                    marker.email, _ts(marker.created_at),
                ),
            )
            return cur.rowcount == 1

    def release(self, schedule_id: str, key: str) -> None:
        with DatabaseManager(self.db_path) as con:
            con.execute("DELETE FROM reminder_markers WHERE schedule_id = ? AND marker_key = ?", (schedule_id, key))

    def count(self, schedule_id: Optional[str] = None) -> int:
        """Quantidade de marcadores (todos ou de uma grade)."""
        with DatabaseManager(self.db_path) as con:
            if schedule_id is None:
                row = con.execute("SELECT COUNT(*) FROM reminder_markers").fetchone()
            else:
                row = con.execute(
                    "SELECT COUNT(*) FROM reminder_markers WHERE schedule_id = ?", (schedule_id,)
                ).fetchone()
        return int(row[0])


class SQLitePondRepo:
    """Leitura de viveiros e vínculos usuário ↔ viveiro."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def get(self, pond_id: str) -> Optional[Pond]:
        with DatabaseManager(self.db_path) as con:
            row = con.execute("SELECT * FROM ponds WHERE id = ?", (pond_id,)).fetchone()
        return self._to_entity(row) if row else None

    def list_for_user(self, user_id: str) -> List[Pond]:
        with DatabaseManager(self.db_path) as con:
            rows = con.execute(
                """
                SELECT p.* FROM ponds p
                JOIN user_ponds up ON up.pond_id = p.id
                WHERE up.user_id = ?
                ORDER BY p.name
                """,
                (user_id,),
            ).fetchall()
        return [self._to_entity(r) for r in rows]

    @staticmethod
    def _to_entity(row: sqlite3.Row) -> Pond:
        return Pond(
            id=row["id"],
            name=row["name"],
            fish_count=int(row["fish_count"] or 0),
            feeding_frequency=int(row["feeding_frequency"] or 0),
        )


class SQLiteUserRepo:
    """Leitura de usuários."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def list_approved(self) -> List[User]:
        with DatabaseManager(self.db_path) as con:
            rows = con.execute(
                "SELECT * FROM users WHERE status = ? ORDER BY id", (UserStatus.APPROVED.value,)
            ).fetchall()
        return [self._to_entity(r) for r in rows]

    @staticmethod
    def _to_entity(row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            display_name=row["display_name"],
            status=UserStatus(row["status"]),
        )


class SQLiteGrowthRepo:
    """Peso médio atual e sobrevivência a partir das tabelas de crescimento/mortalidade."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path

    def get_current_abw(self, pond_id: str) -> Optional[float]:
        with DatabaseManager(self.db_path) as con:
            row = con.execute("SELECT current_abw FROM growth_setups WHERE pond_id = ?", (pond_id,)).fetchone()
        if row is None or row["current_abw"] is None:
            return None
        return float(row["current_abw"])

    def get_survival_percent(self, pond_id: str) -> float:
        with DatabaseManager(self.db_path) as con:
            rows = con.execute("SELECT mortality_rate FROM mortality_logs WHERE pond_id = ?", (pond_id,)).fetchall()
        return survival_percent_from_mortality(r["mortality_rate"] for r in rows)
