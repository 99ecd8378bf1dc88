"""Indicator calculators (moving averages, RSI, MACD, Bollinger, support/resistance)."""
