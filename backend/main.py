import datetime as dt
import logging
from typing import List

from fastapi import FastAPI, HTTPException, Query

from analytics import event_impacts
from classifier import score_events
from forecast_cache import ForecastCache, ForecastStore, MemoryForecastStore
from forecaster import EnergyForecaster
from models import CalendarEvent, DayEnergyForecast, DayEnergySummary, DayRequest, HealthSample
from repo_forecasts import PostgresForecastStore
from service_energy import EnergyService
from settings import settings
from simulate import simulated_history
from summarizer import EnergySummarizer

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_store() -> ForecastStore:
    if settings.cache_backend == "postgres":
        return PostgresForecastStore()
    return MemoryForecastStore()


def build_service() -> EnergyService:
    cache = ForecastCache(build_store())
    return EnergyService(EnergySummarizer(), EnergyForecaster(cache), cache)


app = FastAPI(title="EnFlow Energy Backend")

# Routes stay thin; tests swap `svc` for one backed by a memory store.
svc = build_service()


@app.get("/health")
def health():
    return {"ok": True, "cache_backend": settings.cache_backend}


@app.post("/summary", response_model=DayEnergySummary)
def summary(req: DayRequest):
    try:
        return svc.summarize_day(req.date, req.health, req.events, req.profile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("summary failed")
        raise HTTPException(status_code=500, detail=f"Summary failed: {e}")


@app.post("/forecast", response_model=DayEnergyForecast)
def forecast(req: DayRequest):
    try:
        result = svc.forecast_day(req.date, req.health, req.events, req.profile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("forecast failed")
        raise HTTPException(status_code=500, detail=f"Forecast failed: {e}")
    if result is None:
        raise HTTPException(status_code=404, detail="Not enough health history to forecast")
    return result


@app.post("/blended", response_model=DayEnergySummary)
def blended(req: DayRequest):
    try:
        return svc.blended_summary(req.date, req.health, req.events, req.profile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("blended summary failed")
        raise HTTPException(status_code=500, detail=f"Blended summary failed: {e}")


@app.post("/blended/visible")
def blended_visible(req: DayRequest):
    try:
        return svc.visible_energy(req.date, req.health, req.events, req.profile)._asdict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("visible energy failed")
        raise HTTPException(status_code=500, detail=f"Visible energy failed: {e}")


@app.get("/accuracy")
def accuracy(days: int | None = Query(default=None, ge=1, le=365)):
    return {"days": days or settings.accuracy_days, "accuracy": svc.recent_accuracy(days)}


@app.delete("/cache")
def clear_cache():
    svc.clear_cache()
    return {"cleared": True}


@app.delete("/cache/{day}")
def forget_day(day: dt.date):
    svc.forget_day(day)
    return {"cleared": day.isoformat()}


@app.post("/classify", response_model=List[CalendarEvent])
def classify(events: List[CalendarEvent]):
    return score_events(events)


@app.post("/impacts")
def impacts(events: List[CalendarEvent]):
    return [i._asdict() for i in event_impacts(events)]


@app.get("/simulate", response_model=List[HealthSample])
def simulate(days_back: int = Query(default=7, ge=1, le=60), seed: int | None = None):
    return simulated_history(days_back=days_back, seed=seed)
