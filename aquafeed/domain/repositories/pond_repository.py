# aquafeed/domain/repositories/pond_repository.py
from __future__ import annotations
from typing import Protocol, Optional, Iterable
from aquafeed.domain.entities.pond import Pond, User

class IPondRepository(Protocol):
    """
    Leitura de viveiros (o cadastro de viveiros é um colaborador externo).
    """

    def get(self, pond_id: str) -> Optional[Pond]:
        """Recupera um viveiro pelo id; None se não encontrado."""
        ...

    def list_for_user(self, user_id: str) -> Iterable[Pond]:
        """Viveiros aos quais o usuário está vinculado."""
        ...

class IUserRepository(Protocol):
    """
    Leitura de usuários (aprovação e autenticação são externas).
    """

    def list_approved(self) -> Iterable[User]:
        """Usuários com status aprovado."""
        ...
