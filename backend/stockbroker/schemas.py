from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Literal


class CredentialsRequest(BaseModel):
    # Plain strings: validation messages are produced by services.auth
    email: str = ""
    password: str = ""


class SubscribeRequest(BaseModel):
    ticker: Optional[str] = None


class CredentialRecord(BaseModel):
    email: str
    password: str


class UserProfile(BaseModel):
    email: str
    subscriptions: list[str] = Field(default_factory=list)


class PriceSample(BaseModel):
    time: str
    price: float


class MessageResponse(BaseModel):
    ok: bool = True
    message: str


class LoginResponse(BaseModel):
    ok: bool = True
    message: str
    email: str
    token: str


class SubscriptionsResponse(BaseModel):
    email: str
    subscriptions: list[str]
    message: Optional[str] = None


class TickersResponse(BaseModel):
    tickers: list[str]
    initial_prices: dict[str, float]


class PricesResponse(BaseModel):
    prices: dict[str, float]


class HistoryResponse(BaseModel):
    ticker: str
    samples: list[PriceSample]


class AuthView(BaseModel):
    view: Literal["auth"] = "auth"
    mode: Literal["login", "register"]
    title: str
    submit_label: str
    toggle_label: str
    email_placeholder: str
    password_placeholder: str
    error: Optional[str] = None
    success: Optional[str] = None


class TickerCard(BaseModel):
    ticker: str
    price: float
    change: float
    percent_change: float
    trend: Literal["up", "down"]
    history: list[PriceSample]
    show_chart: bool


class ExpandedTicker(TickerCard):
    starting_price: Optional[float] = None


class DashboardView(BaseModel):
    view: Literal["dashboard"] = "dashboard"
    user: str
    available: list[str]
    subscriptions: list[str]
    cards: list[TickerCard]
    expanded: Optional[ExpandedTicker] = None
    empty: bool
    notice: Optional[str] = None
