# KESTREL Platform - Shared Libraries
"""
Shared core libraries for the KESTREL platform.

Modules:
    kestrel_core: Cointegration, position sizing, execution costs, backtesting
"""

__version__ = "1.0.0"
