"""
FastAPI dependencies.

Stores and services are constructed per request from the database handle,
so tests replace them through `app.dependency_overrides`.
"""

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from .config import settings
from .database import get_database


def get_alert_store(db: AsyncIOMotorDatabase = Depends(get_database)):
    from ..domains.alerts.repository import AlertsRepository
    return AlertsRepository(db, settings.alerts_collection)


def get_admin_alert_store(db: AsyncIOMotorDatabase = Depends(get_database)):
    from ..domains.alerts.repository import AlertsRepository
    return AlertsRepository(db, settings.admin_alerts_collection)


def get_alerts_service(store=Depends(get_alert_store)):
    from ..domains.alerts.service import AlertsService
    return AlertsService(store)


def get_music_service(db: AsyncIOMotorDatabase = Depends(get_database)):
    from ..domains.music.repository import MusicRepository
    from ..domains.music.service import MusicService
    return MusicService(MusicRepository(db, settings.music_collection))


def get_profiles_service(db: AsyncIOMotorDatabase = Depends(get_database)):
    from ..domains.profiles.repository import ProfilesRepository
    from ..domains.profiles.service import ProfilesService
    return ProfilesService(ProfilesRepository(db, settings.profiles_collection))
