"""
Satellite model - the roster of tracked objects.

Fetched TLE records are only kept for satellites listed here; the
NORAD catalog number is the join key between the two.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from satplan.models.base import Base


class Satellite(Base):
    """
    A tracked object keyed by NORAD catalog number.

    Fields:
        noard_id: NORAD catalog number without leading zeros (e.g., '25544')
        name: Display name (e.g., 'ISS (ZARYA)')
        hex_color: Color used by the frontend ground track (e.g., '#ff0000')
    """

    __tablename__ = 'satellite'

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Column name kept as deployed by the frontend and existing databases
    noard_id: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        nullable=False,
        index=True,
        comment='NORAD catalog number'
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default='',
    )

    hex_color: Mapped[str] = mapped_column(
        String(9),
        nullable=False,
        default='#ffffff',
    )

    def __repr__(self) -> str:
        return f'<Satellite {self.noard_id} {self.name}>'
