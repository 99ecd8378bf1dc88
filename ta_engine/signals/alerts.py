"""Alert messages derived from a scored signal."""
from typing import List, Optional

from .rules import IndicatorSnapshot
from ..shared.defaults import HIGH_CONFIDENCE_ALERT
from ..shared.types import MacdTrend, RsiZone, Signal, SignalStrength, SignalType


def generate_alerts(signal: Signal, snapshot: Optional[IndicatorSnapshot] = None) -> List[str]:
    """
    Alerts for a signal:
    - strong buy / sell
    - confidence above 0.8
    - RSI and MACD disagreeing (needs the snapshot the signal came from)
    """
    alerts = []
    if signal.signal_type is not SignalType.HOLD and signal.strength is SignalStrength.STRONG:
        alerts.append(f"Strong {signal.signal_type.value} signal detected")
    if signal.confidence > HIGH_CONFIDENCE_ALERT:
        alerts.append(f"High confidence signal ({signal.confidence:.0%})")

    if snapshot is not None and snapshot.rsi is not None and snapshot.macd is not None:
        rsi, trend = snapshot.rsi.signal, snapshot.macd.trend
        if rsi is RsiZone.OVERBOUGHT and trend is MacdTrend.BULLISH:
            alerts.append("Potential divergence: RSI overbought while MACD is bullish")
        elif rsi is RsiZone.OVERSOLD and trend is MacdTrend.BEARISH:
            alerts.append("Potential divergence: RSI oversold while MACD is bearish")
    return alerts
