import pytest

from millionaire import reduction
from millionaire.config import FILTER_ORDER, FilterConfig
from millionaire.models.scoring import StaticScorer
from millionaire.reduction import (
    MODEL_STEP,
    estimate_reduction,
    format_reduction,
    total_combinations,
)

END_DATE = "2026-10-01"


@pytest.mark.parametrize("n, k, expected", [
    (49, 6, 13_983_816),
    (50, 7, 99_884_400),
    (49, 5, 1_906_884),
    (5, 7, 0),
    (7, 7, 1),
])
def test_total_combinations(n, k, expected):
    assert total_combinations(n, k) == expected


def test_all_filters_disabled(lotto649, random_history):
    df = random_history(lotto649, 30)
    report = estimate_reduction(df, lotto649, FilterConfig.all_disabled(), n_samples=200, rng=0)
    assert report.steps == []
    assert report.initial == report.final == 13_983_816
    assert report.elimination_percent == pytest.approx(0.0)


def test_reduction_with_filters(lotto649, random_history):
    df = random_history(lotto649, 60, seed=7)
    config = FilterConfig()
    report = estimate_reduction(df, lotto649, config, n_samples=500, rng=1, reference_date=END_DATE)

    assert report.initial >= report.final >= 0
    assert 0.0 <= report.elimination_percent <= 100.0
    assert [s.filter_name for s in report.steps] == list(FILTER_ORDER)
    remaining = [s.remaining for s in report.steps]
    assert remaining == sorted(remaining, reverse=True)
    assert report.steps[-1].remaining == report.final
    assert sum(report.elimination_counts.values()) <= 500


def test_fractions_apply_to_running_remainder(monkeypatch, lotto649, random_history):
    df = random_history(lotto649, 30)
    # 10 samples: 2 fail arithmetic, 5 fail sequential, 3 pass
    outcomes = iter(["arithmetic"] * 2 + ["sequential"] * 5 + [None] * 3)
    monkeypatch.setattr(reduction, "first_failing_filter", lambda sample, ctx, config: next(outcomes))

    config = FilterConfig.all_disabled(arithmetic=True, sequential=True, balance=True)
    report = estimate_reduction(df, lotto649, config, n_samples=10, rng=0)

    initial = 13_983_816
    after_arithmetic = initial * (1 - 2 / 10)
    after_sequential = after_arithmetic * (1 - 5 / 10)
    assert [(s.filter_name, s.remaining) for s in report.steps] == [
        ("arithmetic", round(after_arithmetic)),
        ("sequential", round(after_sequential)),
        ("balance", round(after_sequential)),
    ]
    assert report.elimination_counts == {"arithmetic": 2, "sequential": 5, "balance": 0}
    assert report.final == 5_593_526
    assert report.elimination_percent == pytest.approx(60.0)


def test_only_enabled_filters_reported(lotto649, random_history):
    df = random_history(lotto649, 30)
    config = FilterConfig.all_disabled(sequential=True, number_group=True)
    report = estimate_reduction(df, lotto649, config, n_samples=300, rng=2)
    assert [s.filter_name for s in report.steps] == ["sequential", "number_group"]
    assert report.steps[0].label == "Sequential"


def test_model_step_eliminates_low_scores(lotto649, random_history):
    df = random_history(lotto649, 30)
    # 0.01 ** 6 is far below the model threshold
    scorer = StaticScorer({n: 0.01 for n in lotto649.numbers})
    report = estimate_reduction(
        df, lotto649, FilterConfig.all_disabled(), scorer=scorer, n_samples=100, rng=3
    )
    assert [s.filter_name for s in report.steps] == [MODEL_STEP]
    assert report.elimination_counts[MODEL_STEP] == 100
    assert report.final == 0
    assert report.elimination_percent == pytest.approx(100.0)


def test_failing_model_is_skipped(lotto649, random_history):
    df = random_history(lotto649, 30)
    scorer = StaticScorer({1: 0.5})
    with pytest.warns(UserWarning, match="Skipping model step"):
        report = estimate_reduction(
            df, lotto649, FilterConfig.all_disabled(sequential=True), scorer=scorer,
            n_samples=100, rng=4,
        )
    assert [s.filter_name for s in report.steps] == ["sequential"]


def test_format_reduction(lotto649, random_history):
    df = random_history(lotto649, 30)
    config = FilterConfig.all_disabled(balance=True)
    text = format_reduction(estimate_reduction(df, lotto649, config, n_samples=100, rng=5))
    assert "Initial combinations: 13,983,816" in text
    assert "Balance" in text
