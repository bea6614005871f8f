"""Public IP geolocation and weather lookups.

Both are plain request/response collaborators: they try their providers in
order, and when everything fails they return placeholder values instead of
raising, so the router can always answer.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

logger = logging.getLogger("netstats.lookups")

DEFAULT_IP_PROVIDERS: List[str] = [
    "https://ipapi.co/json/",
    "https://ipwho.is/",
    "http://ip-api.com/json/",
]
DEFAULT_WEATHER_URL = "https://wttr.in/{city}?format=j1"
DEFAULT_CITY = "New York"
# fallback city per country (lowercase name) when the IP lookup gives no city
DEFAULT_CITIES_BY_COUNTRY: Dict[str, str] = {"china": "Beijing", "中国": "Beijing"}

_UNKNOWN_CITIES = {"", "unknown", "local", "--"}

_ICONS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("sunny", "clear"), "☀️"),
    (("partly",), "⛅"),
    (("cloud", "overcast"), "☁️"),
    (("rain", "drizzle", "shower"), "🌧️"),
    (("snow", "sleet"), "❄️"),
    (("thunder", "storm"), "⛈️"),
    (("fog", "mist"), "🌫️"),
)


@dataclass(frozen=True)
class IpInfo:
    ip: str = "--"
    city: str = "Unknown"
    country: str = "--"
    timezone: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeatherInfo:
    temp: str = "--°C"
    desc: str = "unavailable"
    location: str = "--"
    country: str = "--"
    local_time: str = "--:--"
    icon: str = "❓"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def weather_icon(desc: str) -> str:
    low = (desc or "").lower()
    for keywords, icon in _ICONS:
        if any(k in low for k in keywords):
            return icon
    return "🌤️"


def local_time(tz_name: str, now: Optional[datetime] = None) -> str:
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return "--:--"
    current = now.astimezone(tz) if now else datetime.now(tz)
    return current.strftime("%H:%M")


def _ip_from_payload(data: Dict[str, Any]) -> Optional[IpInfo]:
    """Normalise the ipapi.co / ipwho.is / ip-api.com response shapes."""
    if data.get("success") is False or data.get("status") == "fail" or data.get("error"):
        return None
    ip = data.get("ip") or data.get("query")
    if not ip:
        return None
    tz = data.get("timezone") or ""
    if isinstance(tz, dict):
        tz = tz.get("id", "")
    return IpInfo(
        ip=str(ip),
        city=str(data.get("city") or "Unknown"),
        country=str(data.get("country_name") or data.get("country") or "--"),
        timezone=str(tz),
    )


class IpLookup:
    def __init__(
        self,
        providers: Optional[List[str]] = None,
        timeout_s: float = 4.0,
        cache_s: float = 600.0,
        client_factory: Callable[..., httpx.Client] = httpx.Client,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.providers = list(providers or DEFAULT_IP_PROVIDERS)
        self.timeout_s = float(timeout_s)
        self.cache_s = float(cache_s)
        self._client_factory = client_factory
        self._clock = clock
        self._cached: Optional[IpInfo] = None
        self._cached_at = 0.0

    def lookup(self, refresh: bool = False) -> IpInfo:
        now = self._clock()
        if not refresh and self._cached is not None and now - self._cached_at < self.cache_s:
            return self._cached
        with self._client_factory(timeout=self.timeout_s, follow_redirects=True) as client:
            for url in self.providers:
                try:
                    resp = client.get(url, headers={"User-Agent": "netstats/0.1"})
                    resp.raise_for_status()
                    info = _ip_from_payload(resp.json())
                except (httpx.HTTPError, ValueError) as exc:
                    logger.info("ip provider %s failed: %s", url, exc)
                    continue
                if info is None:
                    logger.info("ip provider %s returned no address", url)
                    continue
                self._cached, self._cached_at = info, now
                return info
        logger.warning("all ip providers failed")
        return IpInfo()


class WeatherLookup:
    def __init__(
        self,
        url_template: str = DEFAULT_WEATHER_URL,
        default_city: str = DEFAULT_CITY,
        country_defaults: Optional[Dict[str, str]] = None,
        timeout_s: float = 6.0,
        client_factory: Callable[..., httpx.Client] = httpx.Client,
    ) -> None:
        self.url_template = url_template
        self.default_city = default_city
        defaults = DEFAULT_CITIES_BY_COUNTRY if country_defaults is None else country_defaults
        self.country_defaults = {k.lower(): v for k, v in defaults.items()}
        self.timeout_s = float(timeout_s)
        self._client_factory = client_factory

    def default_city_for(self, country: str = "") -> str:
        return self.country_defaults.get((country or "").strip().lower(), self.default_city)

    def lookup(self, city: Optional[str] = None, timezone: str = "", country: str = "") -> WeatherInfo:
        city = (city or "").strip()
        if city.lower() in _UNKNOWN_CITIES:
            city = self.default_city_for(country)
        url = self.url_template.format(city=quote(city))
        try:
            with self._client_factory(timeout=self.timeout_s, follow_redirects=True) as client:
                resp = client.get(url)
                resp.raise_for_status()
                data = resp.json()
            current = data["current_condition"][0]
            area = data["nearest_area"][0]
            desc = current["weatherDesc"][0]["value"]
            tz = timezone or area.get("timezone", [{}])[0].get("value", "")
            return WeatherInfo(
                temp=f"{int(current['temp_C'])}°C",
                desc=desc,
                location=area["areaName"][0]["value"],
                country=area["country"][0]["value"],
                local_time=local_time(tz) if tz else "--:--",
                icon=weather_icon(desc),
            )
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("weather lookup for %s failed: %s", city, exc)
            return WeatherInfo(location=city)
