import re
from dataclasses import dataclass
from datetime import time

from aquafeed.domain.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    Value Object para um horário do dia no formato "HH:MM" (24h).

    - Imutável (frozen) e ordenável (compara por minutos desde 00:00).
    - Valida o formato no __post_init__.
    - Em caso de horário inválido, levanta ValidationError com mensagem padronizada.
    """
    minutes: int

    def __post_init__(self):
        if not (0 <= self.minutes < 24 * 60):
            raise ValidationError(f"Horário inválido: {self.minutes} min")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Converte "HH:MM" (com zero à esquerda) em TimeOfDay."""
        m = _HHMM.match(str(value).strip())
        if not m:
            raise ValidationError(f"Horário inválido: {value!r} (esperado HH:MM)")
        return cls(int(m.group(1)) * 60 + int(m.group(2)))

    @property
    def hour(self) -> int:
        return self.minutes // 60

    @property
    def minute(self) -> int:
        return self.minutes % 60

    def to_time(self) -> time:
        return time(self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"
