"""Database models for SQLAlchemy"""
from sqlalchemy import Column, String, JSON, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime, UTC

Base = declarative_base()

class ThreadRecord(Base):
    __tablename__ = 'threads'

    id = Column(String, primary_key=True)
    key = Column(String, nullable=False, unique=True, index=True)
    coordinates = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    messages = relationship(
        "MessageRecord",
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="MessageRecord.sequence",
    )

class MessageRecord(Base):
    __tablename__ = 'messages'
    __table_args__ = (UniqueConstraint('thread_id', 'sequence', name='uq_messages_thread_sequence'),)

    id = Column(String, primary_key=True)
    thread_id = Column(String, ForeignKey('threads.id', ondelete='CASCADE'), nullable=False)
    sequence = Column(Integer, nullable=False)
    role = Column(String, nullable=False)
    parts = Column(JSON, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    message_metadata = Column('metadata', JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    thread = relationship("ThreadRecord", back_populates="messages")
