"""Backtesting: configuration, simulator, metrics and reports."""
