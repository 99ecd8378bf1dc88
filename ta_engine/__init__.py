"""
Technical-analysis and strategy-backtesting engine.

Data flows one way: price bars -> indicators -> {predictions, signals}
-> backtest simulation -> reports.
"""
__version__ = "0.1.0"
