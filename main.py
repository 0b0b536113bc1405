"""
Delta Straddle Dashboard - FastAPI Application
Run with: uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from delta_straddle import (
    PositionManager,
    PriceRange,
    Selection,
    build_combined_chart,
    calculate_price_range,
    create_position,
    detect_strategy,
    generate_pnl_curve,
    generate_portfolio_pnl_curve,
)
from delta_straddle.config import Settings
from delta_straddle.delta import DeltaAPIError, DeltaClient
from delta_straddle.pnl import find_breakevens

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models
# ============================================================================

class SelectionInput(BaseModel):
    type: Literal['call', 'put']
    symbol: str
    strike: float
    settlement_date: str
    price: Optional[str] = None  # quoted premium, e.g. "512.5"

    def to_selection(self) -> Selection:
        return Selection(
            type=self.type,
            symbol=self.symbol,
            strike=self.strike,
            settlement_date=self.settlement_date,
            price=self.price,
        )


class StrategyRequest(BaseModel):
    selections: List[SelectionInput]
    current_price: Optional[float] = None
    volatility: Optional[float] = None
    points: Optional[int] = Field(default=None, ge=2)


class PositionInput(BaseModel):
    selection: SelectionInput
    position: Literal['long', 'short']
    quantity: int = Field(default=1, ge=1)
    entry_price: float


class ClosePositionInput(BaseModel):
    close_price: float
    close_time: Optional[int] = None  # ms since epoch


class PriceUpdateInput(BaseModel):
    price: float


# ============================================================================
# Application state
# ============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_delta(request: Request) -> DeltaClient:
    return request.app.state.delta


def get_positions(request: Request) -> PositionManager:
    return request.app.state.positions


async def _current_price(delta: DeltaClient) -> float:
    try:
        return await delta.get_btc_price()
    except DeltaAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to fetch underlying price: {e}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.delta = DeltaClient(settings)
        app.state.positions = PositionManager()
        try:
            yield
        finally:
            await app.state.delta.close()

    app = FastAPI(
        title="Delta Straddle Dashboard",
        description="Combined straddle/strangle charts, CCI and option strategy P&L",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    _register_routes(app)
    return app


# ============================================================================
# API Endpoints
# ============================================================================

def _register_routes(app: FastAPI) -> None:

    @app.get("/api/health")
    async def health(positions: PositionManager = Depends(get_positions)):
        """Health check"""
        return {"status": "ok", "open_positions": len(positions)}

    @app.get("/api/settlement-dates")
    async def get_settlement_dates(delta: DeltaClient = Depends(get_delta)):
        """Upcoming settlement dates for the configured underlying"""
        try:
            return {"settlement_dates": await delta.get_settlement_dates()}
        except DeltaAPIError as e:
            raise HTTPException(status_code=502, detail=str(e))

    @app.get("/api/option-chain")
    async def get_option_chain(settlement_time: str,
                               underlying_asset: Optional[str] = None,
                               delta: DeltaClient = Depends(get_delta)):
        """Calls and puts for one settlement date"""
        try:
            chain = await delta.get_option_chain(settlement_time, underlying_asset)
        except DeltaAPIError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return chain.to_dict()

    @app.get("/api/btc-price")
    async def get_btc_price(delta: DeltaClient = Depends(get_delta)):
        """Current underlying mark price"""
        price = await _current_price(delta)
        return {"price": price, "timestamp": int(time.time() * 1000)}

    @app.get("/api/option-ticker")
    async def get_option_ticker(symbol: str, delta: DeltaClient = Depends(get_delta)):
        """Ticker for one option symbol"""
        try:
            return await delta.get_ticker(symbol)
        except DeltaAPIError as e:
            raise HTTPException(status_code=502, detail=str(e))

    @app.get("/api/combined-chart")
    async def get_combined_chart(
        call_symbol: Optional[str] = None,
        put_symbol: Optional[str] = None,
        resolution: str = "1",
        method: Optional[Literal['average', 'sum']] = None,
        cci_period: Optional[int] = Query(default=None, ge=1),
        settings: Settings = Depends(get_settings),
        delta: DeltaClient = Depends(get_delta),
    ):
        """
        Combined call/put series, the underlying aligned to it, and CCI for both.
        A single leg is charted on its own.
        """
        if not call_symbol and not put_symbol:
            raise HTTPException(status_code=400, detail="Select at least one call or put option")

        async def fetch(symbol: Optional[str]):
            if not symbol:
                return []
            return await delta.get_candles(symbol, resolution)

        try:
            call_data, put_data, underlying_data = await asyncio.gather(
                fetch(call_symbol),
                fetch(put_symbol),
                fetch(f"{settings.underlying}USD"),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if not call_data and not put_data:
            raise HTTPException(status_code=404, detail="No candlestick data available for selected options")

        chart = build_combined_chart(
            call_data, put_data, underlying_data,
            method or settings.calculation_method,
            cci_period or settings.cci_period,
        )
        return {
            "call_symbol": call_symbol,
            "put_symbol": put_symbol,
            "resolution": resolution,
            "method": method or settings.calculation_method,
            **chart.to_dict(),
        }

    @app.post("/api/strategy")
    async def analyze_strategy(data: StrategyRequest,
                               settings: Settings = Depends(get_settings),
                               delta: DeltaClient = Depends(get_delta)):
        """Detect the strategy of the selected legs and build its expiration P&L curve"""
        selections = [s.to_selection() for s in data.selections]
        strategy = detect_strategy(selections)

        if not selections:
            return {"strategy": strategy.to_dict(), "pnl_curve": [], "curve_breakevens": []}

        current_price = data.current_price
        if current_price is None:
            current_price = await _current_price(delta)

        price_range = calculate_price_range(
            selections, current_price,
            volatility=data.volatility if data.volatility is not None else settings.pnl_volatility,
            points=data.points or settings.pnl_points,
        )
        curve = generate_pnl_curve(selections, price_range, current_price)

        return {
            "strategy": strategy.to_dict(),
            "current_price": current_price,
            "price_range": price_range.to_dict(),
            "pnl_curve": [p.to_dict() for p in curve],
            "curve_breakevens": find_breakevens(curve),
        }

    @app.get("/api/positions")
    async def list_positions(positions: PositionManager = Depends(get_positions)):
        return [p.to_dict() for p in positions.get_all_positions()]

    @app.post("/api/positions")
    async def open_position(data: PositionInput,
                            positions: PositionManager = Depends(get_positions)):
        """Execute a buy (long) or sell (short) on a selected leg"""
        position = create_position(data.selection.to_selection(), data.position,
                                   data.quantity, data.entry_price)
        positions.add_position(position)
        return position.to_dict()

    @app.get("/api/positions/summary")
    async def positions_summary(current_price: float = 0.0,
                                positions: PositionManager = Depends(get_positions)):
        return positions.get_portfolio_summary(current_price).to_dict()

    @app.get("/api/positions/closed")
    async def closed_positions(positions: PositionManager = Depends(get_positions)):
        return [p.to_dict() for p in positions.get_closed_positions()]

    @app.get("/api/positions/pnl-curve")
    async def positions_pnl_curve(
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        points: int = Query(default=100, ge=2),
        positions: PositionManager = Depends(get_positions),
        delta: DeltaClient = Depends(get_delta),
    ):
        """Portfolio P&L at expiration; defaults to +/-5% around the current price"""
        open_positions = positions.get_all_positions()
        if not open_positions:
            return {"price_range": None, "pnl_curve": []}

        if min_price is None or max_price is None:
            current = await _current_price(delta)
            min_price = current * 0.95 if min_price is None else min_price
            max_price = current * 1.05 if max_price is None else max_price

        price_range = PriceRange(min=min_price, max=max_price, points=points)
        curve = generate_portfolio_pnl_curve(open_positions, price_range)
        return {
            "price_range": price_range.to_dict(),
            "pnl_curve": [p.to_dict() for p in curve],
        }

    @app.delete("/api/positions/{position_id}")
    async def remove_position(position_id: str,
                              positions: PositionManager = Depends(get_positions)):
        """Remove a position without booking P&L"""
        removed = positions.remove_position(position_id)
        if removed is None:
            raise HTTPException(status_code=404, detail=f"Position {position_id} not found")
        return removed.to_dict()

    @app.post("/api/positions/{position_id}/close")
    async def close_position(position_id: str, data: ClosePositionInput,
                             positions: PositionManager = Depends(get_positions)):
        closed = positions.close_position(position_id, data.close_price, data.close_time)
        if closed is None:
            raise HTTPException(status_code=404, detail=f"Position {position_id} not found")
        return closed.to_dict()

    @app.post("/api/positions/{position_id}/price")
    async def update_position_price(position_id: str, data: PriceUpdateInput,
                                    positions: PositionManager = Depends(get_positions)):
        updated = positions.update_position_price(position_id, data.price)
        if updated is None:
            raise HTTPException(status_code=404, detail=f"Position {position_id} not found")
        return updated.to_dict()

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning(f"Rejected {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})


settings = Settings.from_env()
logging.basicConfig(level=settings.log_level, format='%(asctime)s - %(levelname)s - %(message)s')
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
