from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional, Union
import logging

from fastapi import Depends, FastAPI, Header, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.errors import ValidationFailed, install_error_handlers
from .core.logging_config import configure_logging
from .core.redis_client import close_redis, get_redis
from .schemas import (
    AuthView, CredentialsRequest, DashboardView, HistoryResponse, LoginResponse,
    MessageResponse, PricesResponse, SubscribeRequest, SubscriptionsResponse, TickersResponse,
)
from .services import auth, subscriptions
from .services.sessions import Session, SessionManager
from .services.simulator import PriceSimulator
from .store import KeyValueStore
from .views import auth_view, dashboard_view

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    simulator = PriceSimulator(
        settings.initial_prices,
        tick_interval=settings.tick_interval,
        max_step=settings.max_step,
        price_floor=settings.price_floor,
        seed=settings.simulator_seed,
    )
    app.state.simulator = simulator
    app.state.sessions = SessionManager(
        simulator,
        history_size=settings.history_size,
        time_format=settings.history_time_format,
    )
    simulator.start()
    try:
        yield
    finally:
        app.state.sessions.close_all()
        await simulator.stop()
        await close_redis()


app = FastAPI(title="StockBroker Pro API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


async def get_store() -> KeyValueStore:
    return KeyValueStore(await get_redis())


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def current_session(
    x_session_token: Optional[str] = Header(None),
    sessions: SessionManager = Depends(get_sessions),
) -> Session:
    return sessions.require(x_session_token)


def _check_ticker(ticker: str) -> str:
    ticker = ticker.upper()
    if ticker not in settings.tickers:
        raise ValidationFailed(f"Unknown ticker: {ticker}", code="ticker_unknown")
    return ticker


@app.get("/health")
async def health(request: Request, store: KeyValueStore = Depends(get_store)):
    return {
        "ok": True,
        "store": await store.ping(),
        "simulator": request.app.state.simulator.running,
    }


@app.get("/tickers", response_model=TickersResponse)
async def tickers():
    return TickersResponse(tickers=settings.tickers, initial_prices=settings.initial_prices)


@app.get("/prices", response_model=PricesResponse)
async def prices(request: Request):
    return PricesResponse(prices=request.app.state.simulator.snapshot())


@app.post("/auth/register", response_model=MessageResponse)
async def register(req: CredentialsRequest, store: KeyValueStore = Depends(get_store)):
    message = await auth.register(store, req.email, req.password)
    return MessageResponse(message=message)


@app.post("/auth/login", response_model=LoginResponse)
async def login(
    req: CredentialsRequest,
    store: KeyValueStore = Depends(get_store),
    sessions: SessionManager = Depends(get_sessions),
):
    session = await auth.login(store, sessions, req.email, req.password)
    return LoginResponse(message=auth.LOGIN_MESSAGE, email=session.email, token=session.token)


@app.post("/auth/logout", response_model=MessageResponse)
async def logout(
    x_session_token: Optional[str] = Header(None),
    sessions: SessionManager = Depends(get_sessions),
):
    auth.logout(sessions, x_session_token)
    return MessageResponse(message="Logged out")


@app.get("/auth/form", response_model=AuthView)
async def auth_form(mode: str = Query("login", pattern="^(login|register)$")):
    return auth_view(mode)


@app.get("/subscriptions", response_model=SubscriptionsResponse)
async def list_subscriptions(session: Session = Depends(current_session)):
    return SubscriptionsResponse(email=session.email, subscriptions=session.subscriptions)


@app.post("/subscriptions", response_model=SubscriptionsResponse)
async def subscribe(
    req: SubscribeRequest,
    session: Session = Depends(current_session),
    store: KeyValueStore = Depends(get_store),
):
    message = await subscriptions.subscribe(store, session, req.ticker)
    return SubscriptionsResponse(email=session.email, subscriptions=session.subscriptions, message=message)


@app.delete("/subscriptions/{ticker}", response_model=SubscriptionsResponse)
async def unsubscribe(
    ticker: str,
    session: Session = Depends(current_session),
    store: KeyValueStore = Depends(get_store),
):
    message = await subscriptions.unsubscribe(store, session, ticker)
    return SubscriptionsResponse(email=session.email, subscriptions=session.subscriptions, message=message)


@app.get("/history/{ticker}", response_model=HistoryResponse)
async def history(ticker: str, session: Session = Depends(current_session)):
    ticker = _check_ticker(ticker)
    return HistoryResponse(ticker=ticker, samples=session.history.samples(ticker))


@app.get("/dashboard", response_model=Union[DashboardView, AuthView])
async def dashboard(
    expanded: Optional[str] = None,
    x_session_token: Optional[str] = Header(None),
    sessions: SessionManager = Depends(get_sessions),
):
    session = sessions.get(x_session_token)
    if session is None:
        return auth_view("login")
    return dashboard_view(session, expanded)


@app.websocket("/ws/dashboard")
async def dashboard_stream(websocket: WebSocket, token: str = Query(None), expanded: Optional[str] = None):
    sessions: SessionManager = websocket.app.state.sessions
    session = sessions.get(token)
    if session is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = session.watch()
    try:
        await websocket.send_json(dashboard_view(session, expanded).model_dump())
        while True:
            update = await queue.get()
            if update is None:
                await websocket.close()
                break
            await websocket.send_json(dashboard_view(session, expanded).model_dump())
    except WebSocketDisconnect:
        logger.debug("Dashboard stream for %s disconnected", session.email)
    finally:
        session.unwatch(queue)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stockbroker.main:app", host=settings.HOST, port=settings.PORT)
