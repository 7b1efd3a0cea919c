import math

from autoblog.domain.services.constants import (
    PRIME_ELIGIBLE_FIRST,
    REASON_ACCESSORY_TITLE,
    REASON_NO_PRICE,
    REASON_NOT_AVAILABLE,
    REASON_NOT_NEW,
    REASON_NO_RANK,
    REASON_RANK_TOO_HIGH,
)
from autoblog.domain.services.filters import eligibility_reasons, prefilter_reasons
from autoblog.domain.services.ranking import (
    annotate,
    is_main_product,
    keyword_signals_accessory,
    rank_candidates,
    score_product,
)

from tests.fakes import detail, hit


def test_score_counts_distinct_keyword_words():
    assert score_product("Wireless Security Camera", "security camera") == 2
    assert score_product("Wireless Security Camera", "security camera") == 2
    assert score_product("Doorbell", "security camera") == 0
    # repeated keyword words count once
    assert score_product("Camera", "camera camera") == 1


def test_score_matches_substrings():
    assert score_product("Earbuds Pro", "earbud") == 1


def test_accessory_is_not_main_unless_keyword_asks_for_it():
    assert is_main_product("Camera Wall Mount", "security camera") is False
    assert is_main_product("Camera Wall Mount", "camera mount") is True
    assert is_main_product("Wireless Security Camera", "security camera") is True


def test_indicators_match_whole_words_only():
    assert is_main_product("Outdoor Security Camera 360 Coverage Night Vision", "security camera") is True
    assert is_main_product("Discovery Kids Telescope", "telescope") is True
    assert is_main_product("Telescope Carrying Cases", "telescope") is False
    assert is_main_product("Phone Screen Protector", "phone") is False


def test_accessory_intent_needs_a_whole_indicator_word():
    assert keyword_signals_accessory("discovery kids telescope") is False
    assert keyword_signals_accessory("hardshell suitcase") is False
    assert keyword_signals_accessory("oak bookcase") is False
    assert keyword_signals_accessory("camera wall mounts") is True
    assert keyword_signals_accessory("Phone Case") is True


def test_annotate_normalises_fields_and_missing_rank():
    scored = annotate(detail("A1", "Security Camera", rank=None, condition="New", availability="now"), "camera")
    assert scored.condition == "new"
    assert scored.availability_type == "NOW"
    assert math.isinf(scored.rank)
    assert scored.score == 1
    assert scored.is_main is True


def test_eligibility_is_strict_and():
    keyword = "security camera"
    good = annotate(detail("A1", "Security Camera"), keyword)
    assert eligibility_reasons(good) == []

    used = annotate(detail("A1", "Security Camera", condition="used"), keyword)
    assert eligibility_reasons(used) == [REASON_NOT_NEW]


def test_eligibility_reports_every_failed_rule():
    scored = annotate(detail("A1", "Camera", rank=None, availability="OUT_OF_STOCK"), "camera")
    reasons = eligibility_reasons(scored)
    assert REASON_NO_RANK in reasons
    assert REASON_NOT_AVAILABLE in reasons


def test_sales_rank_limit_is_exclusive():
    assert eligibility_reasons(annotate(detail("A1", "Camera", rank=9999), "camera")) == []
    assert eligibility_reasons(annotate(detail("A1", "Camera", rank=10_000), "camera")) == [REASON_RANK_TOO_HIGH]


def test_prime_breaks_ties_deterministically():
    keyword = "camera"
    non_prime = annotate(detail("NP", "Camera", rank=100, prime=False), keyword)
    prime = annotate(detail("PR", "Camera", rank=100, prime=True), keyword)

    for order in ([non_prime, prime], [prime, non_prime]):
        ranked = [c.id for c in rank_candidates(order)]
        assert ranked == (["PR", "NP"] if PRIME_ELIGIBLE_FIRST else ["NP", "PR"])


def test_score_beats_rank_and_missing_rank_sorts_last():
    keyword = "wireless camera"
    a = annotate(detail("A", "Wireless Camera", rank=900), keyword)
    b = annotate(detail("B", "Camera", rank=1), keyword)
    c = annotate(detail("C", "Wireless Camera", rank=None), keyword)
    assert [x.id for x in rank_candidates([b, c, a])] == ["A", "C", "B"]


def test_prefilter_drops_cheap_rejects():
    kw = "wireless earbuds"
    assert prefilter_reasons(hit("A", "Wireless Earbuds"), kw) == []
    assert prefilter_reasons(hit("A", "Wireless Earbuds", price=False), kw) == [REASON_NO_PRICE]
    assert prefilter_reasons(hit("A", "Wireless Earbuds", availability="Backorder"), kw) == [REASON_NOT_AVAILABLE]
    assert prefilter_reasons(hit("A", "Earbud Case"), kw) == [REASON_ACCESSORY_TITLE]
    # accessory search keeps accessory titles
    assert prefilter_reasons(hit("A", "Earbud Case"), "earbud case") == []
