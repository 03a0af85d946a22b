"""
EasyTax Tax Engine — AY 2025-26 (FY 2024-25)
Pure Python, zero LLM, deterministic. Same input → same output.

Slab tables are the FY 2024-25 figures the mobile wizard was built against:
  Old regime: 2.5L/5L/10L breakpoints, top rate 30%
  New regime: 3L/6L/9L/12L/15L breakpoints, top rate 30%

Rebate (87A) is modelled for the old regime only. The new regime gets no
rebate in this engine.
"""
from __future__ import annotations

from easytax.agents.evaluator_agent.schemas import Regime, SlabTax, TaxComputationResult

# ===========================================================================
# OLD REGIME SLAB BREAKPOINTS
# ===========================================================================

OLD_SLAB_2_5L = 250_000
OLD_SLAB_5L   = 500_000
OLD_SLAB_10L  = 1_000_000

# ===========================================================================
# NEW REGIME SLAB BREAKPOINTS: FY 2024-25
# ===========================================================================

NEW_SLAB_3L  = 300_000
NEW_SLAB_6L  = 600_000
NEW_SLAB_9L  = 900_000
NEW_SLAB_12L = 1_200_000
NEW_SLAB_15L = 1_500_000

CESS_RATE = 0.04

# ===========================================================================
# 87A REBATE PARAMETERS: old regime only
# ===========================================================================

OLD_87A_MAX_REBATE      = 12_500
OLD_87A_TAXABLE_CEILING = 500_000

# ===========================================================================
# SLAB TABLES: list[tuple[floor, ceiling, rate]]
# ===========================================================================

OLD_REGIME_SLABS: list[tuple[float, float, float]] = [
    (0,             OLD_SLAB_2_5L, 0.00),   # 0–2.5L: 0%
    (OLD_SLAB_2_5L, OLD_SLAB_5L,   0.05),   # 2.5–5L: 5%
    (OLD_SLAB_5L,   OLD_SLAB_10L,  0.20),   # 5–10L: 20%
    (OLD_SLAB_10L,  float("inf"),  0.30),   # >10L: 30%
]

NEW_REGIME_SLABS: list[tuple[float, float, float]] = [
    (0,            NEW_SLAB_3L,  0.00),     # 0–3L: 0%
    (NEW_SLAB_3L,  NEW_SLAB_6L,  0.05),     # 3–6L: 5%
    (NEW_SLAB_6L,  NEW_SLAB_9L,  0.10),     # 6–9L: 10%
    (NEW_SLAB_9L,  NEW_SLAB_12L, 0.15),     # 9–12L: 15%
    (NEW_SLAB_12L, NEW_SLAB_15L, 0.20),     # 12–15L: 20%
    (NEW_SLAB_15L, float("inf"), 0.30),     # >15L: 30%
]

_SLABS: dict[Regime, list[tuple[float, float, float]]] = {
    Regime.old: OLD_REGIME_SLABS,
    Regime.new: NEW_REGIME_SLABS,
}


# ===========================================================================
# INTERNAL HELPERS (pure, no I/O)
# ===========================================================================

def _calculate_slab_tax(taxable_income: float, slabs: list[tuple[float, float, float]]) -> float:
    """
    Progressive slab tax: every bracket whose floor lies below the income
    contributes (min(income, ceiling) - floor) * rate.
    """
    tax = 0.0
    for floor, ceiling, rate in slabs:
        if taxable_income > floor:
            tax += (min(taxable_income, ceiling) - floor) * rate
    return tax


def _rebate_87a(taxable_income: float, base_tax: float, regime: Regime) -> float:
    """min(base_tax, ₹12,500) for old regime at or below ₹5L taxable; 0 otherwise."""
    if regime is Regime.old and taxable_income <= OLD_87A_TAXABLE_CEILING:
        return min(base_tax, OLD_87A_MAX_REBATE)
    return 0.0


# ===========================================================================
# PUBLIC API
# ===========================================================================

def compute_tax(taxable_income: float, regime: Regime | str = Regime.old) -> TaxComputationResult:
    """
    Tax liability on taxable_income under one regime.

    Sequence:
      1. Clamp negative income to 0
      2. base_tax  = progressive slab tax
      3. cess      = 4% of base_tax
      4. rebate    = 87A (old regime, taxable <= ₹5L only)
      5. total_tax = base_tax + cess - rebate, floored at 0

    Monetary outputs are rounded to paise; total_tax is derived from the
    rounded components so the identity above holds exactly.
    """
    regime = Regime(regime)
    income = max(0.0, float(taxable_income))

    base_tax = round(_calculate_slab_tax(income, _SLABS[regime]), 2)
    cess = round(base_tax * CESS_RATE, 2)
    rebate = round(_rebate_87a(income, base_tax, regime), 2)
    total_tax = round(max(0.0, base_tax + cess - rebate), 2)

    return TaxComputationResult(
        base_tax=base_tax,
        cess=cess,
        rebate=rebate,
        total_tax=total_tax,
    )


def choose_regime(old: TaxComputationResult, new: TaxComputationResult) -> Regime:
    """Regime with the lower total tax. Ties go to the Old Regime."""
    return Regime.new if new.total_tax < old.total_tax else Regime.old


def slab_breakdown(taxable_income: float, regime: Regime | str = Regime.old) -> list[SlabTax]:
    """Tax contributed by each bracket the income reaches; sums to compute_tax().base_tax."""
    regime = Regime(regime)
    income = max(0.0, float(taxable_income))
    lines: list[SlabTax] = []
    for floor, ceiling, rate in _SLABS[regime]:
        if income <= floor and floor > 0:
            break
        lines.append(SlabTax(
            floor=floor,
            ceiling=None if ceiling == float("inf") else ceiling,
            rate=rate,
            tax=round((min(income, ceiling) - floor) * rate, 2),
        ))
    return lines
