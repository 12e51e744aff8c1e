"""TradeMind signal desk: SMA crossover signals for a demo trading dashboard."""

__version__ = "0.1.0"
