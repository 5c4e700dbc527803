from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from core.database import Base
from models.deck import _utcnow


class Card(Base):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True)
    deck_id = Column(Integer, ForeignKey("decks.id", ondelete="CASCADE"), nullable=False, index=True)
    front = Column(String(255), nullable=False)
    back = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    # reserved for spaced repetition; nothing reads or writes these yet
    last_reviewed = Column(DateTime(timezone=True), nullable=True)
    review_count = Column(Integer, nullable=True)
    difficulty = Column(Integer, nullable=True)

    deck = relationship("Deck", back_populates="cards")
