"""Pydantic schemas for recommendation requests and results."""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from activitymind.schemas.activity import Activity, ActivityDraft


class Organization(BaseModel):
    """组织画像，由 onboarding 流程填写。"""

    company_name: str = Field(default="", description="公司名称", examples=["Acme Corp"])
    employee_count: int | None = Field(default=None, description="员工人数", examples=[45])
    work_type: Literal["Remote", "Onsite", "Hybrid"] | None = Field(
        default=None, description="办公模式"
    )
    budget_range: Literal["Low", "Medium", "High"] | None = Field(
        default=None, description="预算区间"
    )
    industry: str = Field(default="", description="所属行业", examples=["Fintech"])


class FilterParams(BaseModel):
    """结构化生成请求的筛选条件，全部可选。"""

    category: str | None = Field(default=None, examples=["Wellness"])
    duration: str | None = Field(default=None, examples=["30 min"])
    budget_level: Literal["Low", "Medium", "High"] | None = Field(
        default=None, description="预算上限（序数比较）"
    )
    indoor_outdoor: str | None = Field(default=None, examples=["Indoor"])
    remote_compatible: bool = Field(default=False, description="是否要求支持远程")


class ChatMessage(BaseModel):
    role: Literal["user", "ai"] = Field(description="消息发送方")
    content: str = Field(description="消息内容")


class SelectionResult(BaseModel):
    """Filter & selection engine output. An empty list is a valid result."""

    activities: list[Activity] = Field(default_factory=list)
    message: str
    fallback_used: bool = Field(
        default=False, description="没有近 30 天未做过的候选时，回退到已做过的活动"
    )


class ModelOutcome(BaseModel):
    kind: Literal["model"] = "model"
    message: str
    suggested_activities: list[ActivityDraft] = Field(default_factory=list)

    @property
    def engine(self) -> str:
        return self.kind


class HeuristicOutcome(BaseModel):
    kind: Literal["heuristic"] = "heuristic"
    message: str
    suggested_activities: list[ActivityDraft] = Field(default_factory=list)

    @property
    def engine(self) -> str:
        return self.kind


BrainstormOutcome = Annotated[
    Union[ModelOutcome, HeuristicOutcome],
    Field(discriminator="kind"),
]
