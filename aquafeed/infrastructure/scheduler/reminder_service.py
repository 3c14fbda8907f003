"""
Serviço de lembretes: executa o disparador em intervalo fixo com APScheduler.

O serviço substitui a antiga flag global de "agendador já iniciado": cada
instância tem seu próprio `start()`/`stop()`, e chamar `start()` duas vezes
registra o job uma única vez.

Uso pela linha de comando:

    python -m aquafeed.infrastructure.scheduler.reminder_service --once
    python -m aquafeed.infrastructure.scheduler.reminder_service --interval 15
"""

from __future__ import annotations

import argparse
import json
import logging
import threading
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from config.database import DATABASE_PATH
from config.settings import DISPATCH_INTERVAL_MINUTES, DISPATCH_MAX_RUN_SECONDS
from aquafeed.domain.use_cases.dispatch_reminders_use_case import DispatchRemindersUseCase, DispatchResult

log = logging.getLogger("aquafeed.infrastructure.reminder_service")

JOB_ID = "feeding_reminders"


class ReminderService:
    """
    Agenda a varredura de lembretes.

    Args:
        dispatcher_factory: cria o disparador a cada execução (conexões novas por varredura).
        interval_minutes: intervalo entre varreduras.
        scheduler_factory: cria o agendador (BackgroundScheduler por padrão).
    """

    def __init__(
        self,
        dispatcher_factory: Callable[[], DispatchRemindersUseCase],
        interval_minutes: int = DISPATCH_INTERVAL_MINUTES,
        scheduler_factory: Callable[[], BackgroundScheduler] = BackgroundScheduler,
    ) -> None:
        if interval_minutes < 1:
            raise ValueError("interval_minutes deve ser >= 1.")
        self.dispatcher_factory = dispatcher_factory
        self.interval_minutes = interval_minutes
        self.scheduler_factory = scheduler_factory
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()
        self.last_result: Optional[DispatchResult] = None

    @property
    def started(self) -> bool:
        return self._scheduler is not None

    def start(self) -> bool:
        """Registra o job e inicia o agendador. Retorna False se já estava iniciado."""
        with self._lock:
            if self._scheduler is not None:
                log.debug("reminder_service_already_started")
                return False
            scheduler = self.scheduler_factory()
            scheduler.add_job(
                self._job,
                "interval",
                minutes=self.interval_minutes,
                id=JOB_ID,
                replace_existing=True,
                coalesce=True,
            )
            scheduler.start()
            self._scheduler = scheduler
            log.info("reminder_service_started interval=%smin", self.interval_minutes)
            return True

    def stop(self) -> bool:
        """Para o agendador. Retorna False se não estava iniciado."""
        with self._lock:
            if self._scheduler is None:
                return False
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            log.info("reminder_service_stopped")
            return True

    def run_once(self) -> DispatchResult:
        """Executa uma varredura imediatamente (mesmo com o serviço parado)."""
        result = self.dispatcher_factory().execute()
        self.last_result = result
        return result

    def _job(self) -> None:
        try:
            self.run_once()
        except Exception:
            # o job continua agendado; a próxima varredura tenta de novo
            log.exception("reminder_job_failed")


# ===== Runner CLI =====
def main(argv=None) -> None:
    from aquafeed.infrastructure.container import build_dispatcher
    from aquafeed.infrastructure.database.migrations import run_migrations

    parser = argparse.ArgumentParser(description="Disparador de lembretes de alimentação")
    parser.add_argument("--once", action="store_true", help="Executa uma varredura e sai")
    parser.add_argument("--interval", type=int, default=DISPATCH_INTERVAL_MINUTES,
                        help=f"Minutos entre varreduras (default: {DISPATCH_INTERVAL_MINUTES})")
    parser.add_argument("--max-run-seconds", type=float, default=DISPATCH_MAX_RUN_SECONDS,
                        help="Limite de duração de cada varredura (0 = sem limite)")
    parser.add_argument("--db", default=str(DATABASE_PATH), help="Caminho do banco sqlite")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_migrations(args.db)

    service = ReminderService(
        lambda: build_dispatcher(db_path=args.db, max_run_seconds=args.max_run_seconds),
        interval_minutes=max(1, args.interval),
    )

    if args.once:
        print(json.dumps(service.run_once().to_dict(), ensure_ascii=False))
        return

    service.start()
    stop = threading.Event()
    try:
        stop.wait()
    except KeyboardInterrupt:
        print("\nEncerrado pelo usuário.")
    finally:
        service.stop()


if __name__ == "__main__":
    main()
