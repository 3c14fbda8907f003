from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable

# assinatura do relógio injetável (testes passam um horário fixo)
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
