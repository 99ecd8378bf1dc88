"""
CSV data loader.

Reads OHLCV CSV exports (Date index, Open/High/Low/Close/Volume columns in any
capitalization) into PriceBar sequences with optional date range filtering.
This is the reference price-data provider for the command-line tools.
"""
import pandas as pd
from pathlib import Path
from typing import List, Optional, Union
from datetime import datetime

from ..indicators.base import frame_to_bars
from ..shared.errors import InvalidConfigurationError, InvalidPriceDataError
from ..shared.types import PriceBar


class DataLoader:
    """
    Loads price bars from a CSV file.

    Supports date range filtering.
    """

    def __init__(self, data_path: Union[str, Path]):
        """
        Initialize the data loader.

        Args:
            data_path: Path to the CSV file containing the data
        """
        self.data_path = Path(data_path)
        if not self.data_path.exists():
            raise FileNotFoundError(f"Data file not found: {self.data_path}")

    def load_frame(
        self,
        start_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
        end_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
    ) -> pd.DataFrame:
        """
        Load the CSV as a DataFrame with lower-case OHLCV columns.

        Args:
            start_date: Start date for filtering (inclusive). If None, no start filter.
            end_date: End date for filtering (inclusive). If None, no end filter.

        Raises:
            InvalidConfigurationError: If start_date is after end_date
            InvalidPriceDataError: If the file has no close column
        """
        # Read CSV with Date as index
        df = pd.read_csv(
            self.data_path,
            index_col=0,
            parse_dates=True,
        )

        # Ensure index is datetime
        if not isinstance(df.index, pd.DatetimeIndex):
            df.index = pd.to_datetime(df.index)

        df = df.rename(columns=lambda c: str(c).strip().lower())
        if "close" not in df.columns:
            raise InvalidPriceDataError(f"No close column in {self.data_path}")
        for col in ("open", "high", "low"):
            if col not in df.columns:
                df[col] = df["close"]
        if "volume" not in df.columns:
            df["volume"] = 0.0
        df["volume"] = df["volume"].fillna(0.0)

        # Sort by date
        df = df.sort_index()
        df = df.dropna(subset=["open", "high", "low", "close"])

        start = pd.to_datetime(start_date) if start_date is not None else None
        end = pd.to_datetime(end_date) if end_date is not None else None
        if start is not None and end is not None and start > end:
            raise InvalidConfigurationError(
                f"start_date ({start.date()}) must not be after end_date ({end.date()})"
            )

        # Apply date range filtering
        if start is not None:
            df = df[df.index >= start]
        if end is not None:
            df = df[df.index <= end]

        return df[["open", "high", "low", "close", "volume"]]

    def load(
        self,
        start_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
        end_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
    ) -> List[PriceBar]:
        """Load validated PriceBars (chronological) for the requested date range."""
        return frame_to_bars(self.load_frame(start_date, end_date))
