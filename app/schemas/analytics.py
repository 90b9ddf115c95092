from datetime import datetime
from typing import Literal

from pydantic import BaseModel


SummaryType = Literal["select", "multi_select", "ranked", "boolean", "rating", "text"]


class OptionCount(BaseModel):
    option: str
    count: int = 0


class RankCount(BaseModel):
    """ranks[i] = number of ballots that placed `option` at position i + 1"""
    option: str
    ranks: list[int]


class RatingCount(BaseModel):
    value: float
    count: int


class FieldSummary(BaseModel):
    field_key: str
    label: str
    type: SummaryType
    total: int = 0  # answers that supplied a value

    counts: list[OptionCount] | None = None  # select, multi_select, boolean
    rank_counts: list[RankCount] | None = None  # ranked
    max_rank: int | None = None  # ranked
    rating_counts: list[RatingCount] | None = None  # rating
    average: float | None = None
    min: float | None = None
    max: float | None = None


class PluralityResult(BaseModel):
    counts: list[OptionCount]
    winner: OptionCount


class IrvRound(BaseModel):
    counts: dict[str, int]
    eliminated: list[str]


class IrvResult(BaseModel):
    winner: str
    rounds: list[IrvRound]


class BordaScore(BaseModel):
    option: str
    score: int = 0


class BordaResult(BaseModel):
    scores: list[BordaScore]
    winner: BordaScore


class ElectionResult(BaseModel):
    """The three tallies run over the same ballots; they need not agree."""
    field_key: str
    label: str
    ballots: int
    plurality: PluralityResult
    irv: IrvResult
    borda: BordaResult


class FormAnalytics(BaseModel):
    form_id: str | None = None
    total_responses: int
    latest_response_at: datetime | None = None
    status_counts: dict[str, int]
    fields: list[FieldSummary]
    elections: list[ElectionResult]
