"""
Tax engine test suite — FY 2024-25 slabs.
All expected values hand-computed from the slab tables.

Groups:
  1. Named constant verification — exact equality
  2. Concrete slab scenarios under both regimes
  3. 87A rebate boundary
  4. Structural properties (non-negative, monotonic, identity)
  5. Regime choice and tie-break
"""
from __future__ import annotations

import pytest

from easytax.agents.evaluator_agent.schemas import Regime
from easytax.agents.evaluator_agent.tax_engine import (
    CESS_RATE,
    NEW_SLAB_3L, NEW_SLAB_6L, NEW_SLAB_9L, NEW_SLAB_12L, NEW_SLAB_15L,
    OLD_87A_MAX_REBATE, OLD_87A_TAXABLE_CEILING,
    OLD_SLAB_2_5L, OLD_SLAB_5L, OLD_SLAB_10L,
    choose_regime,
    compute_tax,
)


# ===========================================================================
# TEST GROUP 1: Named constants
# ===========================================================================

def test_old_regime_slab_constants() -> None:
    assert OLD_SLAB_2_5L == 250_000
    assert OLD_SLAB_5L == 500_000
    assert OLD_SLAB_10L == 1_000_000


def test_new_regime_slab_constants() -> None:
    assert (NEW_SLAB_3L, NEW_SLAB_6L, NEW_SLAB_9L, NEW_SLAB_12L, NEW_SLAB_15L) == (
        300_000, 600_000, 900_000, 1_200_000, 1_500_000,
    )


def test_cess_and_rebate_constants() -> None:
    assert CESS_RATE == 0.04
    assert OLD_87A_MAX_REBATE == 12_500
    assert OLD_87A_TAXABLE_CEILING == 500_000


# ===========================================================================
# TEST GROUP 2: Concrete scenarios
# ===========================================================================

def test_new_regime_ten_lakh() -> None:
    """0 + 15,000 + 30,000 + 15,000 = 60,000 base; 2,400 cess; 62,400 total."""
    result = compute_tax(1_000_000, Regime.new)
    assert result.base_tax == pytest.approx(60_000)
    assert result.cess == pytest.approx(2_400)
    assert result.rebate == 0
    assert result.total_tax == pytest.approx(62_400)


@pytest.mark.parametrize(
    "income, expected_base",
    [
        (0, 0),
        (250_000, 0),
        (400_000, 7_500),            # 5% of 1.5L
        (800_000, 72_500),           # 12,500 + 20% of 3L
        (1_500_000, 262_500),        # 12,500 + 1,00,000 + 30% of 5L
    ],
)
def test_old_regime_base_tax(income: float, expected_base: float) -> None:
    assert compute_tax(income, Regime.old).base_tax == pytest.approx(expected_base)


@pytest.mark.parametrize(
    "income, expected_base",
    [
        (300_000, 0),
        (700_000, 25_000),           # 15,000 + 10% of 1L
        (1_300_000, 110_000),        # 15,000 + 30,000 + 45,000 + 20,000
        (2_000_000, 300_000),        # 1,50,000 + 30% of 5L
    ],
)
def test_new_regime_base_tax(income: float, expected_base: float) -> None:
    assert compute_tax(income, Regime.new).base_tax == pytest.approx(expected_base)


def test_regime_accepts_plain_string() -> None:
    assert compute_tax(1_000_000, "new") == compute_tax(1_000_000, Regime.new)


def test_unknown_regime_rejected() -> None:
    with pytest.raises(ValueError):
        compute_tax(1_000_000, "flat")


# ===========================================================================
# TEST GROUP 3: 87A rebate boundary (old regime only)
# ===========================================================================

def test_old_regime_rebate_at_ceiling() -> None:
    result = compute_tax(500_000, Regime.old)
    assert result.base_tax == pytest.approx(12_500)
    assert result.rebate == pytest.approx(min(result.base_tax, 12_500))
    # cess is charged on the pre-rebate base
    assert result.total_tax == pytest.approx(500)


def test_old_regime_no_rebate_one_rupee_over() -> None:
    result = compute_tax(500_001, Regime.old)
    assert result.rebate == 0
    assert result.total_tax == pytest.approx(round(result.base_tax * 1.04, 2), abs=0.01)


def test_new_regime_never_rebated() -> None:
    assert compute_tax(500_000, Regime.new).rebate == 0


# ===========================================================================
# TEST GROUP 4: Structural properties
# ===========================================================================

INCOMES = [0, 1, 249_999, 250_000, 300_001, 499_999, 500_000, 500_001, 600_000,
           999_999, 1_000_000, 1_200_000, 1_500_001, 5_000_000, 25_000_000]


@pytest.mark.parametrize("regime", list(Regime))
def test_total_tax_non_negative_and_non_decreasing(regime: Regime) -> None:
    totals = [compute_tax(i, regime).total_tax for i in INCOMES]
    assert all(t >= 0 for t in totals)
    assert totals == sorted(totals)


@pytest.mark.parametrize("regime", list(Regime))
@pytest.mark.parametrize("income", INCOMES)
def test_total_is_base_plus_cess_minus_rebate(regime: Regime, income: float) -> None:
    r = compute_tax(income, regime)
    assert r.total_tax == pytest.approx(max(0.0, r.base_tax + r.cess - r.rebate), abs=0.01)


def test_negative_income_clamped_to_zero() -> None:
    result = compute_tax(-10_000, Regime.old)
    assert result.total_tax == 0
    assert result.base_tax == 0


def test_deterministic() -> None:
    assert compute_tax(1_234_567, Regime.old) == compute_tax(1_234_567, Regime.old)


# ===========================================================================
# TEST GROUP 5: Regime choice
# ===========================================================================

def test_choose_new_when_strictly_lower() -> None:
    assert choose_regime(compute_tax(1_000_000, Regime.old), compute_tax(1_000_000, Regime.new)) is Regime.new


def test_tie_goes_to_old_regime() -> None:
    """₹3,02,000 taxable: old 2,600 + 104 - 2,600 = 104; new 100 + 4 = 104."""
    old = compute_tax(302_000, Regime.old)
    new = compute_tax(302_000, Regime.new)
    assert old.total_tax == new.total_tax == pytest.approx(104)
    assert choose_regime(old, new) is Regime.old


def test_zero_income_tie_goes_to_old() -> None:
    assert choose_regime(compute_tax(0, Regime.old), compute_tax(0, Regime.new)) is Regime.old
