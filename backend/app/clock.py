"""
Horloge dans le fuseau fixe de l'école (Asia/Manila, GMT+8).

Les dates de présence et l'expiration des QR codes sont calculées ici et non
à partir de la locale du serveur : un même instant tombe toujours sur le même
jour de cours.
"""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.config import settings


class Clock:
    """Instant, date et heure courants dans un fuseau fixe."""

    def __init__(self, tz_name: str = "Asia/Manila"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def local_time(self) -> time:
        # Stockée dans des colonnes TIME sans tzinfo
        return self.now().time().replace(tzinfo=None)

    def as_local(self, value: datetime) -> datetime:
        """Ramène une date stockée dans le fuseau fixe. Une valeur naïve est lue comme locale."""
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)


class FrozenClock(Clock):
    """Horloge figée sur un instant donné (tests, rejeu de scénarios)."""

    def __init__(self, instant: datetime, tz_name: str = "Asia/Manila"):
        super().__init__(tz_name)
        self.instant = self.as_local(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        """Avance l'instant figé (mêmes mots-clés que timedelta)."""
        self.instant = self.instant + timedelta(**kwargs)


_clock = Clock(settings.TIMEZONE)


def get_clock() -> Clock:
    """Dépendance FastAPI : horloge partagée du processus."""
    return _clock
