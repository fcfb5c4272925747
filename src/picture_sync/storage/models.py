"""SQLAlchemy ORM models for picture metadata."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Picture(Base):
    __tablename__ = "linsv_picture"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uid: Mapped[str] = mapped_column(String(200), index=True)
    name: Mapped[str] = mapped_column(String(500))
    desc: Mapped[str] = mapped_column(Text, default="")
    link: Mapped[str] = mapped_column(String(128), index=True)  # storage key (content digest)
    order_id: Mapped[str] = mapped_column(String(100))
    create_time: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
