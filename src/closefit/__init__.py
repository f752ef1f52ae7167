"""
Closefit: Linear Regression Pipeline for Closing Prices.

This package provides loading, cleaning, normalization, ordinary least
squares fitting, evaluation and reporting for predicting a closing
price or exchange rate from tabular financial data.
"""

from importlib.metadata import version

__version__ = version("closefit")

__all__ = ["__version__"]
