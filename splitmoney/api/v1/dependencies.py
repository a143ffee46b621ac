from fastapi import Request
from splitmoney.utils.balance_cache import BalanceCache


def get_balance_cache(request: Request) -> BalanceCache:
    """The application's balance cache, created at startup"""
    return request.app.state.balance_cache
