"""Pydantic schemas for catalog activities, drafts and history entries."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from activitymind.services.recommend.shared import load_list, to_title_case


class ActivityFields(BaseModel):
    """Fields shared by persisted activities and unsaved drafts."""

    name: str = Field(description="活动名称", examples=["Two Truths and a Lie"])
    description: str = Field(default="", description="活动简介")
    category: str = Field(description="活动分类", examples=["Icebreaker"])
    steps: str = Field(
        default="[]",
        description="JSON 序列化的步骤列表",
        examples=['["Share three statements", "Guess the lie"]'],
    )
    materials: str = Field(
        default="[]", description="JSON 序列化的物料列表", examples=['["None"]']
    )
    estimated_cost: str = Field(
        default="Low", description="预估成本: Low / Medium / High", examples=["Low"]
    )
    duration: str = Field(default="30 min", description="时长档位", examples=["15 min"])
    difficulty: str = Field(default="Medium", description="难度", examples=["Easy"])
    prep_time: str = Field(default="10 min", description="准备时间", examples=["None"])
    min_employees: int = Field(default=0, description="最少人数（0 表示不限）", examples=[2])
    max_employees: int = Field(default=0, description="最多人数", examples=[500])
    indoor_outdoor: str = Field(
        default="Indoor", description="Indoor / Outdoor / Both", examples=["Indoor"]
    )
    remote_compatible: bool = Field(default=False, description="是否支持远程参与")

    @property
    def step_list(self) -> list[str]:
        return load_list(self.steps)

    @property
    def material_list(self) -> list[str]:
        return load_list(self.materials)


class Activity(ActivityFields):
    """A persisted catalog activity (built-in or custom)."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="活动 ID", examples=[12])
    is_custom: bool = Field(default=False, description="是否为用户自建活动")


class ActivityCreate(ActivityFields):
    """Payload for inserting a custom activity."""

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        value = to_title_case(value.strip())
        if not value:
            raise ValueError("category must not be empty")
        return value

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @model_validator(mode="after")
    def _check_employee_bounds(self) -> ActivityCreate:
        if self.min_employees > 0 and self.max_employees > 0 and self.min_employees > self.max_employees:
            raise ValueError(
                f"min_employees ({self.min_employees}) exceeds max_employees ({self.max_employees})"
            )
        return self


class ActivityDraft(ActivityFields):
    """An unsaved suggestion produced by the model or the heuristic matcher.

    ``id`` is a ``draft-`` string so it can never be mistaken for a catalog id.
    """

    id: str = Field(description="草稿 ID", examples=["draft-3f2a9c0d4b1e4f6a8d7c5b3a2e1f0d9c"])
    source_activity_id: int | None = Field(
        default=None, description="启发式改编时对应的原始活动 ID"
    )


class HistoryEntry(BaseModel):
    """One scheduled or completed occurrence of an activity."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_id: int
    scheduled_date: datetime = Field(description="计划日期（本地时间中午 12 点）")
    completed: bool = False
    rating: int | None = None
    feedback: str | None = None
    reminder_handle: str | None = None
    created_at: datetime | None = None


class UpcomingActivity(HistoryEntry):
    """History entry joined with the activity it schedules."""

    name: str
    category: str
    duration: str


class GenerationLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    generated_at: datetime
    activity_id: int


class FavoriteActivity(Activity):
    """Catalog activity joined with its favorite record."""

    favorite_id: int
    notes: str | None = None
    saved_at: datetime
