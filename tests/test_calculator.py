"""Spread calculator: grouping, pair evaluation, dedup, parlays."""

import itertools

import pytest

from factories import NOW, make_market, make_price
from skewdesk.models import Mapping, SpreadSide
from skewdesk.spreads import compute_spreads
from skewdesk.spreads.calculator import SpreadCalculator, evaluate_pair
from skewdesk.spreads.parlay import ParlayConfig, extract_parlay_legs

KALSHI_TITLE = "Trump wins 2024 election"
POLY_TITLE = "Will Trump win the 2024 Presidential Election?"


def _election_markets():
    return [
        make_market("k-1", "kalshi", KALSHI_TITLE),
        make_market("p-1", "polymarket", POLY_TITLE),
    ]


def _election_prices():
    return [
        make_price("k-1", "kalshi", 0.52, 0.48),
        make_price("p-1", "polymarket", 0.60, 0.40),
    ]


def _mapping():
    return Mapping(market_id_a="k-1", market_id_b="p-1", platform_a="kalshi", platform_b="polymarket", similarity_score=0.875)


def test_mapped_markets_produce_yes_and_no_spreads():
    opps = compute_spreads(_election_prices(), _election_markets(), mappings=[_mapping()])
    assert len(opps) == 2
    no, yes = opps
    assert yes.side is SpreadSide.YES
    assert (yes.buy_platform, yes.sell_platform) == ("kalshi", "polymarket")
    assert (yes.buy_price, yes.sell_price) == (0.52, 0.60)
    assert yes.skew_percentage == 15.38
    assert yes.potential_profit == 8.0
    assert no.side is SpreadSide.NO
    assert (no.buy_platform, no.sell_platform) == ("polymarket", "kalshi")
    assert (no.buy_price, no.sell_price) == (0.40, 0.48)
    assert no.skew_percentage == 20.0
    assert {o.source for o in opps} == {"mapping"}
    assert {o.market_id for o in opps} == {"k-1"}


def test_unlinked_markets_with_different_titles_produce_nothing():
    assert compute_spreads(_election_prices(), _election_markets()) == []


def test_equal_prices_produce_nothing():
    prices = [make_price("k-1", "kalshi", 0.50, 0.50), make_price("p-1", "polymarket", 0.50, 0.50)]
    assert compute_spreads(prices, _election_markets(), mappings=[_mapping()]) == []


def _shared_and_title_setup(p2_yes):
    markets = [
        make_market("shared-1", "kalshi", "Shared listing quoted twice"),
        make_market("k-2", "kalshi", "Fed cuts rates in March", category="economics"),
        make_market("p-2", "polymarket", "Fed cuts rates in March", category="economics"),
    ]
    prices = [
        make_price("shared-1", "kalshi", 0.52, 0.48),
        make_price("shared-1", "polymarket", 0.60, 0.40),
        make_price("k-2", "kalshi", 0.50, 0.48),
        make_price("p-2", "polymarket", p2_yes, 0.40),
    ]
    return prices, markets


def test_title_group_duplicates_are_dropped():
    prices, markets = _shared_and_title_setup(p2_yes=0.577)
    calc = SpreadCalculator()
    opps = calc.compute(prices, markets)
    assert len(opps) == 2
    assert {o.source for o in opps} == {"market_id"}
    assert {o.market_id for o in opps} == {"shared-1"}
    assert calc.groups["market_id"] == 1
    assert calc.groups["title"] == 2


def test_title_group_distinct_skew_is_kept():
    prices, markets = _shared_and_title_setup(p2_yes=0.60)
    opps = compute_spreads(prices, markets)
    assert len(opps) == 3
    [title_opp] = [o for o in opps if o.source == "title"]
    assert title_opp.side is SpreadSide.YES
    assert title_opp.skew_percentage == 20.0
    assert title_opp.market_id == "k-2"


def test_min_skew_is_strict():
    prices = [make_price("k-1", "kalshi", 0.50, 0.50), make_price("p-1", "polymarket", 0.505, 0.50)]
    assert compute_spreads(prices, _election_markets(), mappings=[_mapping()]) == []
    [opp] = compute_spreads(prices, _election_markets(), min_skew_percent=0.5, mappings=[_mapping()])
    assert opp.skew_percentage == 1.0


def test_zero_buy_price_is_skipped():
    p1 = make_price("k-1", "kalshi", 0.0, 0.5)
    p2 = make_price("p-1", "polymarket", 0.3, 0.5)
    assert evaluate_pair(p1, p2, "k-1", SpreadSide.YES) is None
    assert compute_spreads([p1, p2], _election_markets(), mappings=[_mapping()]) == []


def test_prices_for_unknown_markets_are_ignored():
    prices = _election_prices() + [make_price("ghost", "kalshi", 0.1, 0.9), make_price("ghost", "manifold", 0.9, 0.1)]
    calc = SpreadCalculator()
    assert len(calc.compute(prices, _election_markets(), [_mapping()])) == 2
    assert calc.skipped_prices == 2


def test_only_latest_quote_counts():
    prices = _election_prices() + [make_price("p-1", "polymarket", 0.52, 0.48, recorded_at=1)]
    assert len(compute_spreads(prices, _election_markets(), mappings=[_mapping()])) == 2


def test_every_opportunity_buys_low_and_sells_high():
    quotes = [0.05, 0.2, 0.35, 0.5, 0.8, 0.95]
    markets = [
        make_market("m-1", "kalshi", "Same"),
        make_market("m-2", "polymarket", "Same"),
        make_market("m-3", "manifold", "Same"),
    ]
    for a, b, c in itertools.product(quotes, repeat=3):
        prices = [
            make_price("m-1", "kalshi", a, 1 - a),
            make_price("m-2", "polymarket", b, 1 - b),
            make_price("m-3", "manifold", c, 1 - c),
        ]
        for opp in compute_spreads(prices, markets, min_skew_percent=0.0):
            assert opp.skew_percentage > 0
            assert opp.buy_price < opp.sell_price
            assert opp.buy_platform != opp.sell_platform


def test_each_mapping_compares_its_own_two_markets():
    # two kalshi markets both matched to the same polymarket market
    markets = [
        make_market("k-elec", "kalshi", "Trump wins 2024 election"),
        make_market("k-pop", "kalshi", "Trump wins 2024 popular vote"),
        make_market("p-elec", "polymarket", "Will Trump win the 2024 Presidential Election?"),
    ]
    prices = [
        make_price("k-elec", "kalshi", 0.60, 0.40),
        make_price("k-pop", "kalshi", 0.30, 0.70, recorded_at=NOW + 1),
        make_price("p-elec", "polymarket", 0.61, 0.39),
    ]
    mappings = [
        Mapping(market_id_a="k-elec", market_id_b="p-elec", similarity_score=0.775),
        Mapping(market_id_a="k-pop", market_id_b="p-elec", similarity_score=0.5129),
    ]
    calc = SpreadCalculator()
    opps = calc.compute(prices, markets, mappings)
    assert calc.groups["mapping"] == 2

    elec = {o.side: o for o in opps if o.market_id == "k-elec"}
    assert elec[SpreadSide.YES].skew_percentage == 1.67
    assert (elec[SpreadSide.YES].buy_price, elec[SpreadSide.YES].sell_price) == (0.60, 0.61)
    assert elec[SpreadSide.NO].skew_percentage == 2.56

    pop = {o.side: o for o in opps if o.market_id == "k-pop"}
    assert (pop[SpreadSide.YES].buy_price, pop[SpreadSide.YES].sell_price) == (0.30, 0.61)
    # no opportunity pairs a k-elec quote with a k-pop label or the reverse
    for opp in opps:
        own = {"k-elec": {0.60, 0.40}, "k-pop": {0.30, 0.70}}[opp.market_id]
        assert own & {opp.buy_price, opp.sell_price}


def test_mapping_to_unknown_or_unquoted_market_is_skipped():
    calc = SpreadCalculator()
    mappings = [_mapping(), Mapping(market_id_a="k-1", market_id_b="z-9", similarity_score=0.9)]
    assert len(calc.compute(_election_prices(), _election_markets(), mappings)) == 2
    assert calc.groups["mapping"] == 1


@pytest.mark.parametrize(
    "title,legs",
    [
        ("Lakers and Celtics win", ["lakers", "celtics win"]),
        ("Parlay: Chiefs, Eagles & Bills", ["chiefs", "eagles", "bills"]),
        ("Lakers, Celtics both win?", ["lakers", "celtics"]),
        ("Will the Lakers win tonight?", None),
    ],
)
def test_extract_parlay_legs(title, legs):
    assert extract_parlay_legs(title) == legs


def _parlay_setup():
    markets = [
        make_market("kp-1", "kalshi", "Lakers and Celtics win", category="sports"),
        make_market("az-1", "azuro", "Lakers win", category="sports"),
        make_market("az-2", "azuro", "Celtics win", category="sports"),
    ]
    prices = [
        make_price("kp-1", "kalshi", 0.20, 0.80),
        make_price("az-1", "azuro", 0.50, 0.50),
        make_price("az-2", "azuro", 0.50, 0.50),
    ]
    return prices, markets


def test_parlay_priced_below_its_legs():
    prices, markets = _parlay_setup()
    [opp] = compute_spreads(prices, markets, parlay=ParlayConfig())
    assert opp.side is SpreadSide.PARLAY
    assert opp.source == "parlay"
    assert opp.market_id == "kp-1"
    assert (opp.buy_platform, opp.sell_platform) == ("kalshi", "azuro")
    assert (opp.buy_price, opp.sell_price) == (0.20, 0.25)
    assert opp.skew_percentage == 25.0
    assert opp.potential_profit == 5.0


def test_parlay_check_is_optional():
    prices, markets = _parlay_setup()
    assert compute_spreads(prices, markets) == []


def test_parlay_below_min_skew_is_dropped():
    prices, markets = _parlay_setup()
    prices[0] = make_price("kp-1", "kalshi", 0.248, 0.752)
    assert compute_spreads(prices, markets, parlay=ParlayConfig()) == []
