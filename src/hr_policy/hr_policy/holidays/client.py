from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

DEFAULT_HOLIDAY_API_URL = "https://date.nager.at/api/v3"


@dataclass(frozen=True)
class PublicHoliday:
    date: date
    local_name: str
    name: str
    country_code: str


class HolidayCalendar(Protocol):
    def holidays_for(self, country_code: Optional[str], year: int) -> list[PublicHoliday]:
        raise NotImplementedError


class NagerHolidayCalendar:
    """Client for the Nager.Date public holiday API.

    Missing data never raises: unknown countries, HTTP errors and malformed
    payloads all degrade to "no holidays".
    """

    def __init__(self, base_url: str = DEFAULT_HOLIDAY_API_URL, *, timeout: float = 5, session: Optional[requests.Session] = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._cache: dict[tuple[str, int], list[PublicHoliday]] = {}

    def holidays_for(self, country_code: Optional[str], year: int) -> list[PublicHoliday]:
        if not country_code:
            return []
        key = (country_code.upper(), int(year))
        if key in self._cache:
            return self._cache[key]

        holidays = self._fetch(*key)
        if holidays is not None:
            self._cache[key] = holidays
        return holidays or []

    def holiday_dates(self, country_code: Optional[str], year: int) -> frozenset[date]:
        return frozenset(h.date for h in self.holidays_for(country_code, year))

    def _fetch(self, country_code: str, year: int) -> Optional[list[PublicHoliday]]:
        url = f"{self._base_url}/PublicHolidays/{year}/{country_code}"
        try:
            response = self._session.get(url, timeout=self._timeout)
            if response.status_code == 404:
                return []
            response.raise_for_status()
            if not response.text.strip():
                return []
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("holiday_lookup_failed", extra={"country": country_code, "year": year, "error": str(e)})
            return None

        holidays: list[PublicHoliday] = []
        for item in payload if isinstance(payload, list) else []:
            try:
                holidays.append(
                    PublicHoliday(
                        date=date.fromisoformat(item["date"]),
                        local_name=item.get("localName") or item.get("name") or "",
                        name=item.get("name") or "",
                        country_code=item.get("countryCode") or country_code,
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue
        return holidays
