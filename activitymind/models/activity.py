from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from activitymind.models.base import Base


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # JSON-encoded list[str], kept as text for compatibility with existing exports
    steps: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    materials: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    estimated_cost: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False)
    prep_time: Mapped[str] = mapped_column(String(50), nullable=False)
    min_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    indoor_outdoor: Mapped[str] = mapped_column(String(20), nullable=False)
    remote_compatible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
