"""
Sugestão de ração por alimentação a partir do peso médio e da sobrevivência.

Este módulo concentra as funções puras de arraçoamento e o value object
`FeedSuggestion`, que agrupa os números exibidos ao operador e usados pelo
registro automático de horários perdidos.

Regras
------
1) Taxa diária (% do peso vivo) por faixa de peso médio (ABW, g):
   `<2 → 20%`, `[2,15) → 10%`, `[15,100) → 5%`, `>=100 → 2,75%`.
2) Peixes vivos estimados: `round(sobrevivência/100 × estocagem inicial)`.
3) Ração diária (kg): `(ABW × vivos / 1000) × (taxa / 100)`.
4) Por alimentação (g): `round(ração diária / frequência × 1000)`; abaixo de
   1 g não há sugestão.

Todas as funções retornam `None` (nunca levantam erro) quando falta algum
dado; quem chama decide como degradar a exibição.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from config.settings import FEEDING_RATE_TABLE, FEEDING_RATE_TOP


def _finite(v: Optional[float]) -> bool:
    return v is not None and isinstance(v, (int, float)) and math.isfinite(v)


def _round_half_up(v: float) -> int:
    # arredondamento comercial (0,5 sobe); `round()` do Python arredonda para o par
    return int(math.floor(v + 0.5))


def recommended_rate_percent(abw: Optional[float]) -> Optional[float]:
    """Taxa de arraçoamento (% do peso vivo/dia) para o peso médio informado."""
    if not _finite(abw):
        return None
    for upper, rate in FEEDING_RATE_TABLE:
        if abw < upper:
            return rate
    return FEEDING_RATE_TOP


def estimated_alive(survival_percent: Optional[float], initial_stocked: Optional[int]) -> Optional[int]:
    """Peixes vivos estimados a partir da sobrevivência (%) e da estocagem inicial."""
    if not _finite(survival_percent) or not _finite(initial_stocked):
        return None
    return max(0, _round_half_up(survival_percent / 100.0 * initial_stocked))


def daily_feed_kg(abw: Optional[float], alive: Optional[int], rate_percent: Optional[float]) -> Optional[float]:
    """Ração diária do viveiro (kg); None se faltar peso, população ou taxa."""
    if not abw or not alive or not rate_percent:
        return None
    biomass_kg = (abw * alive) / 1000.0
    return biomass_kg * (rate_percent / 100.0)


def per_feeding_grams(daily_kg: Optional[float], feeding_frequency: Optional[int]) -> Optional[int]:
    """Quantidade por alimentação (g); None se frequência <= 0, sem ração diária ou se arredondar para 0 g."""
    if not daily_kg or not feeding_frequency or feeding_frequency <= 0:
        return None
    grams = _round_half_up(daily_kg / feeding_frequency * 1000.0)
    return grams if grams > 0 else None


def survival_percent_from_mortality(rates: Iterable[Optional[float]], initial_rate: float = 100.0) -> float:
    """
    Sobrevivência (%) = 100 − soma das mortalidades registradas.

    Cada taxa é limitada a 0–100 e valores ausentes contam como 0; o
    resultado nunca é negativo.
    """
    total = sum(max(0.0, min(100.0, float(r))) for r in rates if _finite(r))
    return max(0.0, initial_rate - total)


@dataclass(frozen=True)
class FeedSuggestion:
    """
    Resultado consolidado da sugestão de ração para um viveiro.

    Attributes:
        abw: Peso médio atual (g), se conhecido.
        estimated_alive: Peixes vivos estimados.
        rate_percent: Taxa diária aplicada (% do peso vivo).
        feeding_frequency: Alimentações por dia.
        daily_feed_kg: Ração diária total (kg).
        per_feeding_grams: Ração por alimentação (g), valor usado nos fluxos.
    """
    abw: Optional[float] = None
    estimated_alive: Optional[int] = None
    rate_percent: Optional[float] = None
    feeding_frequency: int = 0
    daily_feed_kg: Optional[float] = None
    per_feeding_grams: Optional[int] = None

    @property
    def available(self) -> bool:
        return self.per_feeding_grams is not None

    @staticmethod
    def compute(
        abw: Optional[float],
        survival_percent: Optional[float],
        initial_stocked: Optional[int],
        feeding_frequency: Optional[int],
    ) -> "FeedSuggestion":
        """Aplica as quatro regras em sequência; campos sem dado ficam None."""
        rate = recommended_rate_percent(abw)
        alive = estimated_alive(survival_percent, initial_stocked)
        daily = daily_feed_kg(abw, alive, rate)
        return FeedSuggestion(
            abw=abw,
            estimated_alive=alive,
            rate_percent=rate,
            feeding_frequency=int(feeding_frequency or 0),
            daily_feed_kg=daily,
            per_feeding_grams=per_feeding_grams(daily, feeding_frequency),
        )
