SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365
SECONDS_PER_YEAR = DAYS_PER_YEAR * SECONDS_PER_DAY

# Lookup tolerances
PRICE_TOLERANCE_SECONDS = 30 * SECONDS_PER_DAY
YIELD_TOLERANCE_SECONDS = 90 * SECONDS_PER_DAY

# Heuristic per-step execution cost (gas-like units, illustrative only)
BASE_STEP_COST = 50_000
REBALANCE_COST_PER_ASSET = 120_000
HARVEST_COST = 80_000

# Policy labels
DATA_POLICIES = ("strict", "lenient")
REFERENCE_PRICE_POLICIES = ("last_rebalance", "previous_day")
REBALANCE_TRIGGERS = ("interval_or_threshold", "interval_then_threshold")
