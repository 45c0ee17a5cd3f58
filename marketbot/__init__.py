"""
Market-making bot for the Bitfex exchange.

One pass per process: close out imbalanced open orders, cancel the rest,
then place a fresh randomized batch of buy/sell orders per pair.
"""

__version__ = "0.3.0"
