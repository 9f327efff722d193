from sqlalchemy import Boolean, BigInteger, Column, Float, Index, Integer, String
from ..db import Base


class Song(Base):
    """One row of the song statistics dataset (loaded by the ingestion job)."""

    __tablename__ = "songs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=False, index=True)
    genre = Column(String(64), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    duration_sec = Column(Integer, nullable=False)
    popularity = Column(Integer, nullable=False, default=0)  # 0..100
    streams = Column(BigInteger, nullable=False, default=0)
    danceability = Column(Float, nullable=True)  # 0..1
    energy = Column(Float, nullable=True)  # 0..1
    tempo = Column(Float, nullable=True)  # BPM
    explicit = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_song_genre_year", "genre", "year"),
    )
