"""Air-quality forecasting: normalize, window, predict and score time series."""

__version__ = "0.1.0"
