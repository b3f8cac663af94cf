from fastapi import APIRouter, Depends

from journal_backend.schemas.response import Response, ok
from journal_backend.services.weather import WeatherProvider, get_weather_provider
from journal_backend.utils.auth import Principal, get_current_principal

router = APIRouter(tags=["weather"])


@router.get("/{city}", response_model=Response, summary="Greet the caller with current weather")
async def greet_with_weather(
    city: str,
    principal: Principal = Depends(get_current_principal),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    """
    Returns a greeting for the caller plus the current weather in `city`.
    Raises 502 if the weather service fails.
    """
    snapshot = await provider.current(city)
    return ok(f"Hello {principal.username}", snapshot)
