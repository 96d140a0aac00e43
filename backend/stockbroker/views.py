"""
View models for the two screens: the auth form and the dashboard.

Both builders are pure; they read session state and never change it.
"""
from __future__ import annotations

from typing import Optional

from .core.config import settings
from .schemas import AuthView, DashboardView, ExpandedTicker, TickerCard
from .services.sessions import Session


def auth_view(mode: str = "login", error: Optional[str] = None,
              success: Optional[str] = None) -> AuthView:
    registering = mode == "register"
    return AuthView(
        mode="register" if registering else "login",
        title="StockBroker Pro",
        submit_label="Register" if registering else "Login",
        toggle_label=("Already have an account? Login" if registering
                      else "Don't have an account? Register"),
        email_placeholder="your.email@example.com",
        password_placeholder=(f"At least {settings.min_password_length} characters"
                              if registering else "Enter your password"),
        error=error,
        success=success,
    )


def _card(session: Session, ticker: str) -> TickerCard:
    price = session.prices.get(ticker, settings.initial_prices.get(ticker, 0.0))
    change = session.history.price_change(ticker, price)
    history = session.history.samples(ticker)
    return TickerCard(
        ticker=ticker,
        price=round(price, 2),
        change=round(change, 2),
        percent_change=round(session.history.percent_change(ticker, price), 2),
        trend="up" if change >= 0 else "down",
        history=history,
        show_chart=len(history) > 1,
    )


def _expanded(session: Session, ticker: str) -> ExpandedTicker:
    card = _card(session, ticker)
    return ExpandedTicker(
        **card.model_dump(),
        starting_price=session.history.starting_price(ticker),
    )


def dashboard_view(session: Session, expanded: Optional[str] = None) -> DashboardView:
    subscriptions = list(session.subscriptions)
    expanded = expanded.upper() if expanded else None
    return DashboardView(
        user=session.email,
        available=[t for t in settings.tickers if t not in subscriptions],
        subscriptions=subscriptions,
        cards=[_card(session, t) for t in subscriptions],
        expanded=_expanded(session, expanded) if expanded in subscriptions else None,
        empty=not subscriptions,
        notice=session.notice,
    )
