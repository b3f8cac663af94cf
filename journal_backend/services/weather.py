"""
journal_backend/services/weather.py

WeatherProvider: current conditions for a city from the weatherstack API.
Thin pass-through; no retries. Any transport error, non-200 answer or API-level
error object becomes UpstreamFailure (502).
"""

import logging
import os
from typing import List, Optional

import httpx
from pydantic import BaseModel

from journal_backend.errors import UpstreamFailure

logger = logging.getLogger(__name__)

WEATHER_API_URL = os.getenv("WEATHER_API_URL", "https://api.weatherstack.com/current")


class WeatherSnapshot(BaseModel):
    """The subset of weatherstack's 'current' block the API returns."""
    city: str
    country: Optional[str] = None
    observation_time: Optional[str] = None
    temperature: Optional[int] = None
    feelslike: Optional[int] = None
    humidity: Optional[int] = None
    wind_speed: Optional[int] = None
    descriptions: List[str] = []


class WeatherProvider:
    def __init__(
        self,
        api_key: str,
        base_url: str = WEATHER_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def current(self, city: str) -> WeatherSnapshot:
        """Fetch the current weather for 'city'."""
        params = {"access_key": self.api_key, "query": city}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Weather request for '{city}' failed: {e}")
            raise UpstreamFailure("Weather service unreachable")

        if resp.status_code != 200:
            logger.error(f"Weather API answered {resp.status_code} for '{city}'")
            raise UpstreamFailure(f"Weather service answered {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            raise UpstreamFailure("Weather service returned invalid JSON")

        # weatherstack reports failures as 200 + {"success": false, "error": {...}}
        if not isinstance(data, dict) or data.get("error") or "current" not in data:
            error = data.get("error") if isinstance(data, dict) else None
            info = (error or {}).get("info", "unexpected payload")
            logger.error(f"Weather API error for '{city}': {info}")
            raise UpstreamFailure(f"Weather service error: {info}")

        current = data["current"]
        location = data.get("location") or {}
        return WeatherSnapshot(
            city=location.get("name") or city,
            country=location.get("country"),
            observation_time=current.get("observation_time"),
            temperature=current.get("temperature"),
            feelslike=current.get("feelslike"),
            humidity=current.get("humidity"),
            wind_speed=current.get("wind_speed"),
            descriptions=current.get("weather_descriptions") or [],
        )


def get_weather_provider() -> WeatherProvider:
    """FastAPI dependency; tests override it with a fake."""
    return WeatherProvider(api_key=os.getenv("WEATHER_API_KEY", ""))
