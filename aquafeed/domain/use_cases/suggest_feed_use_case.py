# aquafeed/domain/use_cases/suggest_feed_use_case.py
from __future__ import annotations
import logging

from aquafeed.domain.entities.feed_suggestion import FeedSuggestion
from aquafeed.domain.entities.pond import Pond
from aquafeed.domain.repositories.growth_repository import IGrowthRepository

log = logging.getLogger("aquafeed.usecases.suggest")

class SuggestFeedUseCase:
    """
    Monta a sugestão de ração de um viveiro:
    - peso médio atual (colaborador de crescimento)
    - sobrevivência (colaborador de mortalidade) × estocagem inicial do viveiro
    - frequência de alimentação do viveiro
    """

    def __init__(self, growth_repo: IGrowthRepository) -> None:
        self.growth_repo = growth_repo

    def execute(self, pond: Pond) -> FeedSuggestion:
        """
        Calcula a sugestão para o viveiro.

        Returns:
            FeedSuggestion: campos ficam None quando falta dado (ex.: sem ABW).
        """
        abw = self.growth_repo.get_current_abw(pond.id)
        survival = self.growth_repo.get_survival_percent(pond.id)
        suggestion = FeedSuggestion.compute(abw, survival, pond.fish_count, pond.feeding_frequency)
        log.debug("suggestion pond=%s abw=%s alive=%s per_feeding=%s",
                  pond.id, abw, suggestion.estimated_alive, suggestion.per_feeding_grams)
        return suggestion
