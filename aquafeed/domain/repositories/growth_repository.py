# aquafeed/domain/repositories/growth_repository.py
from __future__ import annotations
from typing import Protocol, Optional

class IGrowthRepository(Protocol):
    """
    Colaborador de crescimento/mortalidade (somente leitura).

    Fornece as entradas da sugestão de ração.
    """

    def get_current_abw(self, pond_id: str) -> Optional[float]:
        """Peso médio atual (g) do viveiro, ou None se ainda não configurado."""
        ...

    def get_survival_percent(self, pond_id: str) -> float:
        """Sobrevivência estimada em % (0–100), derivada dos registros de mortalidade."""
        ...
