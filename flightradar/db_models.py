"""SQLAlchemy ORM models for the FlightRadar relay."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from flightradar.db import Base


class TrackPointRecord(Base):
    """One persisted position sample of an aircraft track."""

    __tablename__ = "track_points"
    __table_args__ = (
        Index("ix_track_points_aircraft_timestamp", "aircraft_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    aircraft_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    altitude: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    heading: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
