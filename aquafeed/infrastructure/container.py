# montagem dos casos de uso com os repositórios sqlite (usado pela CLI, API e painel)
from __future__ import annotations

from typing import Optional

from config.settings import DISPATCH_MAX_RUN_SECONDS, REMINDER_WINDOW_MINUTES, TIMEZONE
from aquafeed.domain.clock import Clock
from aquafeed.domain.entities.pond import User
from aquafeed.domain.repositories.notifier import INotifier
from aquafeed.domain.use_cases.backfill_missed_feeding_use_case import BackfillMissedFeedingUseCase
from aquafeed.domain.use_cases.dispatch_reminders_use_case import DispatchRemindersUseCase
from aquafeed.domain.use_cases.manage_schedule_use_case import LoadScheduleUseCase
from aquafeed.domain.use_cases.submit_feeding_log_use_case import FeedingSession
from aquafeed.domain.use_cases.suggest_feed_use_case import SuggestFeedUseCase
from aquafeed.infrastructure.database.sqlite_repositories import (
    SQLiteFeedingLogRepo, SQLiteGrowthRepo, SQLitePondRepo, SQLiteReminderMarkerRepo,
    SQLiteScheduleRepo, SQLiteUserRepo,
)
from aquafeed.infrastructure.notifications.email_notifier import build_notifier


def build_dispatcher(
    db_path: Optional[str] = None,
    notifier: Optional[INotifier] = None,
    clock: Optional[Clock] = None,
    tz=TIMEZONE,
    max_run_seconds: Optional[float] = DISPATCH_MAX_RUN_SECONDS,
) -> DispatchRemindersUseCase:
    """Disparador de lembretes ligado ao banco e ao notificador configurado."""
    return DispatchRemindersUseCase(
        user_repo=SQLiteUserRepo(db_path),
        pond_repo=SQLitePondRepo(db_path),
        schedule_loader=LoadScheduleUseCase(SQLiteScheduleRepo(db_path), clock=clock),
        marker_repo=SQLiteReminderMarkerRepo(db_path),
        notifier=notifier or build_notifier(),
        suggest_feed=SuggestFeedUseCase(SQLiteGrowthRepo(db_path)),
        clock=clock,
        tz=tz,
        window_minutes=REMINDER_WINDOW_MINUTES,
        max_run_seconds=max_run_seconds,
    )


def build_feeding_session(
    user: User,
    db_path: Optional[str] = None,
    clock: Optional[Clock] = None,
    tz=TIMEZONE,
) -> FeedingSession:
    """Sessão da tela de registro manual para o usuário informado."""
    log_repo = SQLiteFeedingLogRepo(db_path)
    return FeedingSession(
        user=user,
        schedule_loader=LoadScheduleUseCase(SQLiteScheduleRepo(db_path), clock=clock),
        suggest_feed=SuggestFeedUseCase(SQLiteGrowthRepo(db_path)),
        backfill=BackfillMissedFeedingUseCase(log_repo, clock=clock, tz=tz),
        log_repo=log_repo,
        clock=clock,
        tz=tz,
    )
