"""skewdesk - cross-platform prediction market matching and skew detection."""

__version__ = "0.1.0"
