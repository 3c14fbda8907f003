from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from aquafeed.domain.enums import UserStatus
from aquafeed.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Pond:
    """
    Viveiro (somente leitura neste subsistema; o cadastro é externo).

    - `fish_count` é a quantidade estocada inicialmente.
    - `feeding_frequency` é a quantidade de alimentações/dia definida no viveiro.
    """
    id: str
    name: str
    fish_count: int = 0
    feeding_frequency: int = 0

    def __post_init__(self):
        if not str(self.id).strip():
            raise ValidationError("Id do viveiro não pode estar vazio.")
        if self.fish_count < 0:
            raise ValidationError("Quantidade de peixes não pode ser negativa.")
        if self.feeding_frequency < 0:
            raise ValidationError("Frequência de alimentação não pode ser negativa.")


@dataclass(frozen=True)
class User:
    """Usuário do painel (aprovação e autenticação ficam fora deste módulo)."""
    id: str
    email: str
    display_name: Optional[str] = None
    status: UserStatus = UserStatus.APPROVED

    @property
    def is_approved(self) -> bool:
        return self.status is UserStatus.APPROVED
