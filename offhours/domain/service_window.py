"""
Service window classification.
"""

from datetime import datetime
from enum import Enum

from offhours.config.settings import Settings
from offhours.utils.time import civil_time


class ServiceState(str, Enum):
    """Where the current moment falls relative to the service windows."""
    BUSINESS = "business"
    OFF_HOURS = "off_hours"
    LUNCH = "lunch"


class TimeWindowClassifier:
    """Maps an instant to a ServiceState using local hours in a fixed timezone."""

    def __init__(self, settings: Settings):
        self.timezone = settings.timezone
        self.open_hour = settings.open_hour
        self.close_hour = settings.close_hour
        self.lunch_start_hour = settings.lunch_start_hour
        self.lunch_end_hour = settings.lunch_end_hour

    def _hour(self, now: datetime) -> int:
        return civil_time(now, self.timezone).hour

    def is_off_hours(self, now: datetime) -> bool:
        hour = self._hour(now)
        return hour < self.open_hour or hour >= self.close_hour

    def is_lunch(self, now: datetime) -> bool:
        hour = self._hour(now)
        return self.lunch_start_hour <= hour < self.lunch_end_hour

    def classify(self, now: datetime) -> ServiceState:
        """Lunch wins over off-hours when both windows hold."""
        if self.is_lunch(now):
            return ServiceState.LUNCH
        if self.is_off_hours(now):
            return ServiceState.OFF_HOURS
        return ServiceState.BUSINESS
