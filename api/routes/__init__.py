"""API routers, mounted under /api."""

from api.routes import auth, bonds, cashflow, portfolio, stocks

ROUTERS = [
    auth.router,
    stocks.router,
    bonds.router,
    cashflow.router,
    portfolio.router,
]

__all__ = ["ROUTERS"]
