import pytest

from aquafeed.domain.entities.feed_suggestion import (
    FeedSuggestion, daily_feed_kg, estimated_alive, per_feeding_grams,
    recommended_rate_percent, survival_percent_from_mortality,
)
from aquafeed.domain.entities.pond import Pond
from aquafeed.domain.use_cases.suggest_feed_use_case import SuggestFeedUseCase

from fakes import FakeGrowthRepo


@pytest.mark.parametrize("abw,rate", [
    (0.5, 20.0), (1.99, 20.0), (2.00, 10.0), (14.99, 10.0),
    (15.00, 5.0), (99.99, 5.0), (100.00, 2.75), (350.0, 2.75),
])
def test_faixas_da_taxa(abw, rate):
    assert recommended_rate_percent(abw) == rate


def test_taxa_sem_peso():
    assert recommended_rate_percent(None) is None
    assert recommended_rate_percent(float("nan")) is None


def test_vivos_arredonda_meio_para_cima():
    assert estimated_alive(50.0, 3) == 2
    assert estimated_alive(90.0, 1000) == 900
    assert estimated_alive(None, 1000) is None


def test_funcoes_sem_dado_retornam_none():
    assert daily_feed_kg(None, 100, 10.0) is None
    assert daily_feed_kg(10.0, 0, 10.0) is None
    assert per_feeding_grams(1.0, 0) is None
    assert per_feeding_grams(None, 2) is None


def test_sobrevivencia_a_partir_da_mortalidade():
    assert survival_percent_from_mortality([]) == 100.0
    assert survival_percent_from_mortality([5.0, 2.5, None]) == 92.5
    # cada taxa limitada a 100 e total nunca negativo
    assert survival_percent_from_mortality([10.0, 150.0]) == 0.0
    assert survival_percent_from_mortality([-20.0, 10.0]) == 90.0


def test_sugestao_completa():
    s = FeedSuggestion.compute(abw=10.0, survival_percent=90.0, initial_stocked=1000, feeding_frequency=2)
    assert s.rate_percent == 10.0
    assert s.estimated_alive == 900
    assert s.daily_feed_kg == pytest.approx(0.9)
    assert s.per_feeding_grams == 450
    assert s.available


def test_use_case_sem_peso_medio_nao_tem_sugestao():
    pond = Pond(id="p1", name="V1", fish_count=1000, feeding_frequency=2)
    s = SuggestFeedUseCase(FakeGrowthRepo(abw=None)).execute(pond)
    assert not s.available
    assert s.per_feeding_grams is None
    assert s.estimated_alive == 1000


def test_racao_que_arredonda_para_zero_nao_e_sugestao():
    # 1 peixe de 1 g: 0,0002 kg/dia → 0,1 g por alimentação
    s = FeedSuggestion.compute(abw=1.0, survival_percent=100.0, initial_stocked=1, feeding_frequency=2)
    assert s.daily_feed_kg == pytest.approx(0.0002)
    assert s.per_feeding_grams is None
    assert not s.available
    assert per_feeding_grams(0.0002, 2) is None
