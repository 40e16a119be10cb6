import pytest

from millionaire.analysis import MeanStd
from millionaire.config import FILTER_ORDER, FilterConfig
from millionaire.filters import (
    build_context,
    calculate_similarity,
    contains_too_many_sequentials,
    failing_filters,
    first_failing_filter,
    get_board_stats,
    has_valid_consecutive_repeat,
    has_valid_last_digit_distribution,
    has_valid_number_group_distribution,
    is_arithmetic_progression,
    is_balanced_high_low,
    is_balanced_odd_even,
    is_delta_sum_valid,
    is_digit_sum_within_range,
    is_rank_sum_within_range,
    is_sum_within_range,
    is_too_similar,
    is_within_positional_bounds,
    passes_all_filters,
    passes_filter,
    run_all_filters,
)

LAST_DIGIT_STATS = tuple([0.1] * 10)


# ── Pattern rules ────────────────────────────────────────────────────────

@pytest.mark.parametrize("numbers, expected", [
    ([10, 20, 30, 40, 50], True),
    ([3, 6, 9], True),
    ([1, 2, 3, 4, 5], False),
    ([1, 3, 5, 8], False),
    ([2, 4], False),
])
def test_arithmetic_progression(numbers, expected):
    assert is_arithmetic_progression(numbers) is expected


def test_arithmetic_ignores_input_order():
    assert is_arithmetic_progression([30, 10, 20])


@pytest.mark.parametrize("numbers, max_sequential, expected", [
    ([5, 6, 7, 8, 20, 21], 3, True),
    ([1, 2, 4, 5, 7, 8], 3, False),
    ([1, 2, 3, 10, 20, 30], 3, True),
    ([5, 6, 7, 20], 4, False),
    ([5, 6, 7, 8], 4, True),
])
def test_sequential_runs(numbers, max_sequential, expected):
    assert contains_too_many_sequentials(numbers, max_sequential) is expected


def test_odd_even_balance():
    assert not is_balanced_odd_even([1, 3, 5, 7, 9, 11])
    assert is_balanced_odd_even([1, 3, 5, 2, 4, 6])
    # 7 numbers: 2..5 odd allowed
    assert is_balanced_odd_even([1, 3, 2, 4, 6, 8, 10])
    assert not is_balanced_odd_even([1, 2, 4, 6, 8, 10, 12])


def test_high_low_balance():
    assert not is_balanced_high_low([1, 2, 3, 4, 5, 6], 49)
    assert is_balanced_high_low([1, 2, 3, 30, 40, 45], 49)
    assert not is_balanced_high_low([26, 30, 35, 40, 45, 49], 49)


# ── Statistical rules ────────────────────────────────────────────────────

def test_sum_within_range():
    stats = MeanStd(100.0, 10.0)
    assert is_sum_within_range([40, 45], stats)
    assert not is_sum_within_range([40, 44], stats)
    assert is_sum_within_range([1, 2], None)


def test_digit_sum_within_range():
    # digit sum of [12, 23] is 8
    assert is_digit_sum_within_range([12, 23], MeanStd(8.0, 0.0))
    assert is_digit_sum_within_range([12, 23], MeanStd(10.0, 1.5))
    assert not is_digit_sum_within_range([12, 23], MeanStd(10.0, 1.0))


def test_rank_sum_unseen_numbers_take_range():
    ranks = {1: 1, 2: 2}
    # 5 has no rank, so it counts as 49: 1 + 2 + 49
    assert is_rank_sum_within_range([1, 2, 5], MeanStd(52.0, 0.0), ranks, 49)
    assert not is_rank_sum_within_range([1, 2, 5], MeanStd(10.0, 1.0), ranks, 49)
    assert is_rank_sum_within_range([1, 2, 5], None, ranks, 49)


def test_delta_sum_valid():
    # delta sum of [3, 7, 10] is 7
    assert is_delta_sum_valid([10, 3, 7], MeanStd(7.0, 0.0))
    assert is_delta_sum_valid([10, 3, 7], MeanStd(10.0, 2.0))
    assert not is_delta_sum_valid([10, 3, 7], MeanStd(20.0, 2.0))


def test_positional_bounds():
    bounds = ((1, 10), (5, 20), (15, 30))
    assert is_within_positional_bounds([20, 3, 10], bounds)
    assert not is_within_positional_bounds([11, 12, 20], bounds)
    assert is_within_positional_bounds([40, 45, 49], None)


def test_last_digit_distribution():
    assert has_valid_last_digit_distribution([1, 2, 3, 4, 5, 6], LAST_DIGIT_STATS)
    assert not has_valid_last_digit_distribution([1, 11, 21, 31, 5, 6], LAST_DIGIT_STATS)
    # only two distinct last digits among six numbers
    assert not has_valid_last_digit_distribution([1, 11, 21, 2, 12, 22], LAST_DIGIT_STATS)
    assert has_valid_last_digit_distribution([1, 11, 21, 31, 41, 5], None)


# ── History rules ────────────────────────────────────────────────────────

def test_similarity_at_sixty_percent_needs_four_matches():
    window = [(1, 2, 3, 4, 40, 41)]
    assert is_too_similar([1, 2, 3, 4, 10, 20], window, 60)
    assert not is_too_similar([1, 2, 3, 10, 20, 30], window, 60)
    assert not is_too_similar([1, 2, 3, 4, 10, 20], [], 60)


def test_calculate_similarity():
    window = [(1, 2, 3, 4, 40, 41), (1, 2, 10, 11, 12, 13)]
    assert calculate_similarity([1, 2, 3, 10, 20, 30], window) == pytest.approx(50.0)
    assert calculate_similarity([1, 2, 3], []) == 0.0


def test_consecutive_repeat():
    last = (1, 2, 3, 4, 5, 6)
    assert has_valid_consecutive_repeat([1, 2, 10, 20, 30, 40], last)
    assert not has_valid_consecutive_repeat([1, 2, 3, 20, 30, 40], last)
    assert has_valid_consecutive_repeat([1, 2, 3, 4, 5, 6], None)


def test_number_groups():
    assert not has_valid_number_group_distribution([1, 2, 3, 4, 5, 40], 49)
    assert has_valid_number_group_distribution([1, 2, 3, 4, 20, 40], 49)
    # seven numbers: five in one decade exceeds the per-decade cap
    assert not has_valid_number_group_distribution([1, 2, 3, 4, 5, 30, 40], 50)


# ── Dispatch ─────────────────────────────────────────────────────────────

def test_disabled_filters_are_skipped(blank_context):
    config = FilterConfig.all_disabled()
    numbers = (1, 2, 3, 4, 5, 6)
    assert failing_filters(numbers, blank_context, config) == []
    assert first_failing_filter(numbers, blank_context, config) is None
    assert passes_all_filters(numbers, blank_context, config)


def test_failing_filters_priority_order(blank_context):
    numbers = (1, 2, 3, 4, 5, 6)
    failed = failing_filters(numbers, blank_context, FilterConfig())
    assert failed == ["sequential", "balance", "number_group"]
    assert first_failing_filter(numbers, blank_context, FilterConfig()) == "sequential"


def test_failing_filters_can_ignore_toggles(blank_context):
    numbers = (1, 2, 3, 4, 5, 6)
    config = FilterConfig.all_disabled()
    assert failing_filters(numbers, blank_context, config, respect_toggles=False) == [
        "sequential", "balance", "number_group",
    ]
    assert not passes_filter("sequential", numbers, blank_context, config)


def test_unknown_filter_name(blank_context):
    with pytest.raises(KeyError):
        passes_filter("lucky", (1, 2, 3, 4, 5, 6), blank_context, FilterConfig())


def test_statistical_filters_skip_without_history(blank_context):
    config = FilterConfig.all_disabled(
        statistical_sum=True, digit_sum=True, rank_sum=True,
        positional=True, delta=True, last_digit=True,
    )
    assert passes_all_filters((44, 45, 46, 47, 48, 49), blank_context, config)


def test_build_context(daily_grand, make_frame):
    mains = [[1, 2, 3, 4, 5], [6, 7, 8, 9, 10], [11, 12, 13, 14, 15], [16, 17, 18, 19, 20]]
    df = make_frame(daily_grand, mains, grands=[7, 1, 2, 3])
    with pytest.warns(UserWarning):
        ctx = build_context(df, daily_grand)
    assert ctx.last_draw == (16, 17, 18, 19, 20)
    assert ctx.recent_grands == (1, 2, 3)
    assert ctx.game is daily_grand


def test_run_all_filters_report(blank_context):
    config = FilterConfig.all_disabled(sequential=True, balance=True, arithmetic=True)
    report = run_all_filters((1, 2, 3, 20, 30, 40), blank_context, config)
    assert report["total"] == 3
    assert [r["filter"] for r in report["results"]] == ["arithmetic", "sequential", "balance"]
    assert report["passed_count"] == 2
    assert report["confidence"] == "2/3"
    assert not report["all_passed"]


def test_board_stats(lotto649):
    stats = get_board_stats([1, 2, 3, 30, 40, 45], lotto649)
    assert stats["sum"] == 121
    assert stats["odd_even"] == "3/3"
    assert stats["high_low"] == "3/3"
    assert stats["group_spread"] == {"1-10": 3, "21-30": 1, "31-40": 1, "41-49": 1}


# ── FilterConfig ─────────────────────────────────────────────────────────

def test_filter_config_defaults():
    config = FilterConfig()
    assert config.enabled_filters() == list(FILTER_ORDER)
    assert config.recent_similarity_threshold == 49
    assert config.older_similarity_threshold == 60
    assert config.pool_size == 30


def test_filter_config_validation():
    with pytest.raises(ValueError):
        FilterConfig(pool_strategy="magic")
    with pytest.raises(KeyError):
        FilterConfig().is_enabled("lucky")
