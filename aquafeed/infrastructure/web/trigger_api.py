# rota http que dispara uma varredura de lembretes (chamada por cron externo ou manualmente)
from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from flask import Flask, jsonify

from aquafeed.domain.enums import DispatchStatus
from aquafeed.domain.use_cases.dispatch_reminders_use_case import DispatchRemindersUseCase

log = logging.getLogger("aquafeed.infrastructure.web")

HTTP_STATUS = {
    DispatchStatus.OK: 200,
    DispatchStatus.NO_APPROVED_USERS: 200,
    DispatchStatus.THROTTLED: 429,
    DispatchStatus.ERROR: 500,
}


def create_app(dispatcher_factory: Optional[Callable[[], DispatchRemindersUseCase]] = None,
               db_path: Optional[str] = None) -> Flask:
    """
    Cria a aplicação Flask.

    Sem `dispatcher_factory`, usa o disparador ligado ao sqlite e roda as migrations.
    """
    if dispatcher_factory is None:
        from aquafeed.infrastructure.container import build_dispatcher
        from aquafeed.infrastructure.database.migrations import run_migrations

        run_migrations(db_path)
        dispatcher_factory = lambda: build_dispatcher(db_path=db_path)  # noqa: E731

    app = Flask(__name__)

    @app.route("/api/feeding/alerts", methods=["GET"])
    def feeding_alerts():
        try:
            result = dispatcher_factory().execute()
        except Exception as e:
            log.exception("dispatch_failed")
            return jsonify({"status": DispatchStatus.ERROR.value, "error": str(e)}), 500
        return jsonify(result.to_dict()), HTTP_STATUS[result.status]

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port)
