"""
SQLAlchemy ORM models for the pumpwatch database.

Three tables back the engine's durable state:

- ``devices``: the registry of known controller ids.
- ``buffered_samples``: each device's open-session buffer, one row per
  ping, ordered by the autoincrement ``id`` (arrival order).
- ``run_events``: each device's append-only event history, ordered by
  ``id`` (append order).

Civil timestamps are stored as text next to their zone name; they are
only meaningful as a pair.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Double,
    ForeignKey,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_RowId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all pumpwatch ORM models."""

    pass


class Device(Base):
    """A registered pump controller.

    Attributes:
        device_id: Identifier the controller sends as ``deviceId``.
        position: Registration order; the dashboard defaults to the
            lowest position.
        created_at: Registration time.
    """

    __tablename__ = "devices"

    device_id: Mapped[str] = mapped_column(Text, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation of the Device."""
        return f"Device(device_id={self.device_id!r}, position={self.position!r})"


class BufferedSample(Base):
    """One ping held in a device's open-session buffer."""

    __tablename__ = "buffered_samples"

    id: Mapped[int] = mapped_column(_RowId, primary_key=True, autoincrement=True)
    device_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[float] = mapped_column(Double, nullable=False)
    timezone: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the BufferedSample."""
        return (
            f"BufferedSample(device_id={self.device_id!r}, "
            f"timestamp={self.timestamp!r}, value={self.value!r})"
        )


class RunEventRecord(Base):
    """A compiled run event. Rows are inserted once and never updated."""

    __tablename__ = "run_events"

    id: Mapped[int] = mapped_column(_RowId, primary_key=True, autoincrement=True)
    device_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey("devices.device_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[str] = mapped_column(Text, nullable=False)
    start_time: Mapped[str] = mapped_column(Text, nullable=False)
    end_time: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    average_value: Mapped[float] = mapped_column(Double, nullable=False)
    discharge_volume: Mapped[float] = mapped_column(Double, nullable=False)
    sample_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation of the RunEventRecord."""
        return (
            f"RunEventRecord(device_id={self.device_id!r}, "
            f"start_time={self.start_time!r}, duration={self.duration!r})"
        )
