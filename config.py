# config.py

# Default values
DEFAULT_BTC_STACK = 5.0
DEFAULT_SAVINGS_PCT = 65.0
DEFAULT_INVESTMENTS_PCT = 25.0
DEFAULT_SPECULATION_PCT = 10.0
DEFAULT_COLLATERAL_PCT = 50.0
DEFAULT_LTV_RATIO = 40.0
DEFAULT_LOAN_RATE = 7.0
DEFAULT_LOAN_TERM_YEARS = 10
DEFAULT_INTEREST_ONLY = True
DEFAULT_INVESTMENTS_START_YIELD = 30.0
DEFAULT_INVESTMENTS_END_YIELD = 0.0
DEFAULT_SPECULATION_START_YIELD = 40.0
DEFAULT_SPECULATION_END_YIELD = 0.0
DEFAULT_EXCHANGE_RATE = 100000.0
DEFAULT_TIME_HORIZON = 20
DEFAULT_ACTIVATION_YEAR = 10
DEFAULT_STARTING_EXPENSES = 50000.0
DEFAULT_INCOME_ALLOCATION_PCT = 10.0
DEFAULT_INCOME_REINVESTMENT_PCT = 30.0
DEFAULT_ENABLE_ANNUAL_REALLOCATION = True
DEFAULT_PRICE_CRASH_PCT = 0.0

# Flat fallback used to seed the per-year rate arrays
DEFAULT_BTC_PRICE_RATE = 50.0
DEFAULT_INFLATION_RATE = 8.0
DEFAULT_INCOME_YIELD = 8.0
DEFAULT_RATE_ARRAY_LENGTH = 30

# Liquidation happens when collateral value drops to 80% of the loan-backed value.
# Fixed by the lending model, not user configurable.
LIQUIDATION_THRESHOLD_PCT = 80.0

# Input validation ranges
TIME_HORIZON_RANGE = (1, 100)
BTC_STACK_MAX = 1000000.0
PERCENT_RANGE = (0.0, 100.0)
YIELD_RANGE = (0.0, 1000.0)
LOAN_TERM_MIN = 1
ALLOCATION_TOTAL = 100

# Loan configuration warning thresholds
LTV_WARN_HIGH = 50.0
LTV_WARN_LOW = 10.0
LOAN_RATE_WARN_LOW = 1.0
LOAN_RATE_WARN_HIGH = 20.0
LOAN_TERM_WARN_YEARS = 30
COLLATERAL_WARN_PCT = 80.0

# Growth tiers, ordered from worst to best. A growth percentage belongs to the
# highest tier whose threshold it strictly exceeds; anything <= 0 is a decline.
GROWTH_TIERS = (
    ("decline", None),
    ("modest", 0.0),
    ("solid", 100.0),
    ("high", 500.0),
    ("exponential", 1000.0),
)
GROWTH_TIER_LABELS = {
    "decline": "Stack Decline",
    "modest": "Modest Growth",
    "solid": "Solid Growth",
    "high": "High Growth",
    "exponential": "Exponential Growth",
}

# Liquidation risk tiers, ordered from riskiest to safest. A buffer belongs to
# the first tier whose upper bound it is below.
LIQUIDATION_RISK_TIERS = (
    ("at_risk", 25.0),
    ("moderate", 50.0),
    ("safe", 100.0),
    ("very_safe", None),
)
LIQUIDATION_RISK_LABELS = {
    "at_risk": "Liquidation Risk",
    "moderate": "Moderate Liquidation Risk",
    "safe": "Safe Liquidation Buffer",
    "very_safe": "Very Safe Leverage",
}
# Loan risk levels share the liquidation tier bounds
LOAN_RISK_LEVELS = {
    "at_risk": "extreme",
    "moderate": "high",
    "safe": "moderate",
    "very_safe": "low",
}

# Rate generation
PRESET_CURVE_EXPONENT = 1.5
SAYLOR_START_RATE = 37.0
SAYLOR_END_RATE = 21.0

# Economic scenario presets: (start rate, end rate) per curve
ECONOMIC_SCENARIOS = {
    "tight": {
        "name": "Tight monetary policy",
        "description": "Low inflation, steady BTC growth",
        "inflation": (2.0, 2.0),
        "btc_price": (10.0, 30.0),
        "income_yield": (5.0, 5.0),
    },
    "debasement": {
        "name": "Managed debasement",
        "description": "Moderate inflation, solid BTC growth",
        "inflation": (8.0, 12.0),
        "btc_price": (30.0, 70.0),
        "income_yield": (8.0, 10.0),
    },
    "crisis": {
        "name": "Accelerated crisis",
        "description": "Higher inflation, accelerated BTC adoption",
        "inflation": (8.0, 25.0),
        "btc_price": (50.0, 120.0),
        "income_yield": (35.0, 40.0),
    },
    "spiral": {
        "name": "Hyperinflationary spiral",
        "description": "High inflation, rapid BTC adoption",
        "inflation": (10.0, 100.0),
        "btc_price": (80.0, 200.0),
        "income_yield": (20.0, 2.0),
    },
}

# UI tuning constants
BTC_STACK_STEP = 0.1
PERCENT_STEP = 1.0
EXCHANGE_RATE_STEP = 1000.0
EXPENSES_STEP = 1000.0
