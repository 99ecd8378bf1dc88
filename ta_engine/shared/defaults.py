"""
Centralized default values for indicator, prediction, signal and backtest parameters.

This is the SINGLE SOURCE OF TRUTH for all parameter defaults.
All modules should import from here to ensure consistency.
"""

# Rounding precision for reproducible output
INDICATOR_DECIMALS = 4  # Indicator values (SMA, EMA, RSI, MACD, Bollinger)
PRICE_DECIMALS = 2  # Prices (predictions, bounds, support/resistance levels)
CONFIDENCE_DECIMALS = 3

# Moving averages
SMA_SHORT_PERIOD = 20
SMA_LONG_PERIOD = 50
EMA_SHORT_PERIOD = 12
EMA_LONG_PERIOD = 26

# RSI (Relative Strength Index)
RSI_PERIOD = 14
RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30
RSI_STRONG_DISTANCE = 20  # |RSI - 50| above this is "strong"
RSI_MODERATE_DISTANCE = 10  # |RSI - 50| above this is "moderate"

# MACD (Moving Average Convergence Divergence)
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

# Bollinger Bands
BOLLINGER_PERIOD = 20
BOLLINGER_STD_MULTIPLIER = 2.0

# Support / Resistance
SR_LOOKBACK = 50
SR_TOLERANCE = 0.02  # Relative distance for merging touches into one level
SR_RECENCY_DAYS = 30  # Linear recency decay window
SR_MIN_STRENGTH = 0.3
SR_MAX_LEVELS = 5

# Predictions
PREDICTION_HORIZON_DAYS = 7
PREDICTION_ALGORITHM = "ensemble"
POLYNOMIAL_DEGREE = 3
ENSEMBLE_POLYNOMIAL_DEGREE = 2
CONFIDENCE_Z = 1.96  # 95% interval
LINEAR_MIN_BARS = 10
POLYNOMIAL_EXTRA_BARS = 5  # Polynomial needs degree + this many bars
MA_CROSSOVER_SHORT = 10
MA_CROSSOVER_LONG = 30
MA_CROSSOVER_EXTRA_BARS = 5  # Crossover needs long period + this many bars
MA_CROSSOVER_CONSISTENCY_WINDOW = 5
RSI_MOMENTUM_MIN_BARS = 20
RSI_MOMENTUM_EXTREME_NUDGE = 0.02  # Overbought / oversold price nudge
RSI_MOMENTUM_NEUTRAL_NUDGE = 0.01

# Signal scoring
SIGNAL_MIN_BARS = 50
SIGNAL_WEIGHTS = {
    "rsi": 0.25,
    "macd": 0.25,
    "bollinger": 0.20,
    "moving_average": 0.20,
    "support_resistance": 0.10,
    "volume": 0.10,
}
SIGNAL_BUY_THRESHOLD = 0.3
SIGNAL_SELL_THRESHOLD = -0.3
SIGNAL_STRONG_THRESHOLD = 0.6
SIGNAL_MODERATE_THRESHOLD = 0.3
WEIGHT_SUM_TOLERANCE = 1e-6
# Minimum |sub-score| for a component to contribute a reasoning sentence
REASONING_THRESHOLDS = {
    "rsi": 0.5,
    "macd": 0.5,
    "bollinger": 0.4,
    "moving_average": 0.3,
    "support_resistance": 0.2,
    "volume": 0.2,
}
SR_PROXIMITY = 0.02  # Levels within 2% of price are "near"
VOLUME_AVERAGE_WINDOW = 5
VOLUME_MIN_BARS = 20
VOLUME_SPIKE_RATIO = 1.5
VOLUME_DRY_RATIO = 0.7
HIGH_CONFIDENCE_ALERT = 0.8

# Backtesting
INITIAL_CAPITAL = 10_000.0
POSITION_SIZE_PCT = 0.2  # 20% of capital per trade
STOP_LOSS_PCT = 0.1
TAKE_PROFIT_PCT = 0.2
MAX_POSITIONS = 3
COMMISSION_PCT = 0.001
SLIPPAGE_PCT = 0.0005
BACKTEST_STRATEGY = "signal_based"
BACKTEST_MIN_BARS = 100
BACKTEST_WARMUP_BARS = 50
PREDICTION_THRESHOLD = 0.02  # Predicted move needed to act in prediction-based strategies
MIN_PREDICTION_CONFIDENCE = 0.5
TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365.25

# Optimizer grid
OPTIMIZER_POSITION_SIZES = [0.1, 0.2, 0.3]
OPTIMIZER_STOP_LOSSES = [0.05, 0.1, 0.15]
OPTIMIZER_TAKE_PROFITS = [0.1, 0.2, 0.3]

# Analysis facade cache
CACHE_TTL_SECONDS = 300.0
