"""
TLE models - orbital element history and the sources it is fetched from.

The tle table is append-only: every ingestion run adds rows, nothing is
updated or deduplicated. Consumers pick the most recent row per satellite.
"""

from typing import Optional

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from satplan.models.base import Base


class Tle(Base):
    """
    One two-line element set captured for a roster satellite.

    Not a foreign key to satellite: rows outlive roster edits.
    """

    __tablename__ = 'tle'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    sat_noard_id: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment='NORAD catalog number'
    )

    # Unix timestamp of capture
    time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment='Unix timestamp the element set was captured'
    )

    line1: Mapped[str] = mapped_column(String(80), nullable=False)
    line2: Mapped[str] = mapped_column(String(80), nullable=False)

    __table_args__ = (
        # "latest TLE for satellite X" lookups
        Index('ix_tle_sat_time', 'sat_noard_id', 'time'),
    )

    def __repr__(self) -> str:
        return f'<Tle {self.sat_noard_id} @ {self.time}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'sat_noard_id': self.sat_noard_id,
            'time': self.time,
            'line1': self.line1,
            'line2': self.line2,
        }


class TleSite(Base):
    """A configured TLE source endpoint."""

    __tablename__ = 'tle_site'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    site: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment='Short label used in reports'
    )

    url: Mapped[str] = mapped_column(String(500), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f'<TleSite {self.site} {self.url}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'site': self.site,
            'url': self.url,
            'description': self.description,
        }
