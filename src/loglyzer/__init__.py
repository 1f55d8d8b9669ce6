"""Access-log analyzer with follow mode, HTML reports and a live JSON feed."""

__version__ = "0.1.0"
