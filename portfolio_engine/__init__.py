# portfolio_engine/__init__.py
"""
Portfolio valuation engine.

Replays transaction logs from several accounts into average-cost holdings,
values them through a price oracle, and produces performance summaries and
value time series per account, across accounts, and per asset.

Usage:
    from portfolio_engine.services import PerformanceService, CachingPriceOracle

    service = PerformanceService(source=my_source, oracle=CachingPriceOracle())
    summary = service.global_("1y")
"""

__version__ = "0.1.0"
