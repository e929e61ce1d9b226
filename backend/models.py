from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Literal, Optional, Union
from constants import (
    DRILL_CATEGORIES, DRILL_TITLE_MAX_LENGTH, GROUP_NAME_MAX_LENGTH, GROUP_TYPES, PLAYER_NAME_MAX_LENGTH,
    PLAYER_STATUSES, PRACTICE_MINUTES_MAX, PRACTICE_STATUSES, SKILL_LEVELS,
)

DrillCategory = Literal[tuple(DRILL_CATEGORIES)]
SkillLevel = Literal[tuple(SKILL_LEVELS)]
PlayerStatus = Literal[tuple(PLAYER_STATUSES)]
PracticeStatus = Literal[tuple(PRACTICE_STATUSES)]
GroupType = Literal[tuple(GROUP_TYPES)]


# ============ ROSTER & CATALOGS ============

class Player(BaseModel):
    id: str = ""
    name: str = Field(..., min_length=1, max_length=PLAYER_NAME_MAX_LENGTH)
    jersey_number: str = ""
    position: str = ""
    status: PlayerStatus = "active"

    @field_validator('name')
    @classmethod
    def name_cleaned(cls, v):
        return v.strip()


class Drill(BaseModel):
    id: str = ""
    title: str = Field(..., min_length=1, max_length=DRILL_TITLE_MAX_LENGTH)
    category: DrillCategory = "warmup"
    description: str = ""
    coach_notes: str = ""
    video_url: str = ""
    equipment_ids: list[str] = Field(default_factory=list)
    base_duration: int = Field(default=10, ge=0)
    location: str = ""
    skill_level: SkillLevel = "beginner"


class Coach(BaseModel):
    id: str = ""
    name: str = Field(..., min_length=1, max_length=PLAYER_NAME_MAX_LENGTH)
    email: str = ""


class Equipment(BaseModel):
    id: str = ""
    name: str = Field(..., min_length=1, max_length=50)
    quantity: int = Field(default=1, ge=0)


# ============ GROUPS ============

class Group(BaseModel):
    id: str
    name: str = Field(..., max_length=GROUP_NAME_MAX_LENGTH)
    player_ids: list[str] = Field(default_factory=list)
    type: GroupType = "group"


class GroupStats(BaseModel):
    total_players: int
    average_size: float
    min_size: int
    max_size: int


class GroupAssignment(BaseModel):
    group_id: str
    drill_id: str
    rotation_order: int


# ============ SESSION BLOCKS ============

class StationDrill(BaseModel):
    drill_id: str
    duration: int = 0


class RotationDrill(BaseModel):
    """One station of a rotation: drills run back to back for each visiting group."""
    station_name: str = ""
    drills: Optional[list[StationDrill]] = None
    coach_ids: list[str] = Field(default_factory=list)
    group_ids: list[str] = Field(default_factory=list)
    equipment_ids: list[str] = Field(default_factory=list)
    station_groups: Optional[dict[str, Group]] = None

    @property
    def coach_id(self) -> str:
        return self.coach_ids[0] if self.coach_ids else ""


class SingleBlock(BaseModel):
    type: Literal["single"] = "single"
    id: str = ""
    order: int = 0
    drill_id: str = ""
    duration: Optional[int] = None
    group_ids: Optional[list[str]] = None
    coach_ids: Optional[list[str]] = None
    equipment_ids: Optional[list[str]] = None
    drill_groups: Optional[dict[str, Group]] = None
    notes: Optional[str] = None


class RotationBlock(BaseModel):
    type: Literal["rotation"] = "rotation"
    id: str = ""
    order: int = 0
    rotation_drills: Optional[list[RotationDrill]] = None
    simultaneous_stations: bool = False
    notes: Optional[str] = None


SessionBlock = Annotated[Union[SingleBlock, RotationBlock], Field(discriminator="type")]


# ============ DERIVED RESULTS ============

class TimeEngineResult(BaseModel):
    total_minutes: int
    used_minutes: int
    remaining_minutes: int
    is_over_limit: bool
    water_breaks_inserted: int


class RotationSlot(BaseModel):
    group_id: str
    drill_id: str
    start_time: int
    end_time: int
    coach_id: str


class RotationResult(BaseModel):
    total_session_time: int
    time_per_group: int
    rotation_schedule: list[RotationSlot]


# ============ PRACTICE ============

class DrillRating(BaseModel):
    rating: int = Field(default=0, ge=0, le=5)
    notes: str = ""


class Practice(BaseModel):
    id: str = ""
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    total_minutes: int = Field(default=90, ge=0, le=PRACTICE_MINUTES_MAX)
    attendance: dict[str, bool] = Field(default_factory=dict)
    groups: dict[str, Group] = Field(default_factory=dict)
    session_blocks: list[SessionBlock] = Field(default_factory=list)
    post_practice_notes: str = ""
    drill_ratings: dict[str, DrillRating] = Field(default_factory=dict)
    status: PracticeStatus = "draft"


class PracticeTimeResponse(BaseModel):
    result: TimeEngineResult
    water_break_positions: list[int]
    status: str
    used_percent: float
    label: str


# ============ ENGINE REQUESTS ============

class BlockDurationRequest(BaseModel):
    block: SessionBlock


class RemainingTimeRequest(BaseModel):
    total_minutes: int
    session_blocks: list[SessionBlock] = Field(default_factory=list)
    auto_water_breaks: bool = True


class WaterBreakRequest(BaseModel):
    session_blocks: list[SessionBlock] = Field(default_factory=list)


class WaterBreakResponse(BaseModel):
    drill_minutes: int
    water_breaks_needed: int
    positions: list[int]


class CreateGroupsRequest(BaseModel):
    players: list[Player]
    attendance: dict[str, bool] = Field(default_factory=dict)
    number_of_groups: int = 0
    seed: Optional[int] = None


class CreatePartnersRequest(BaseModel):
    players: list[Player]
    attendance: dict[str, bool] = Field(default_factory=dict)
    seed: Optional[int] = None


class BalanceGroupsRequest(BaseModel):
    groups: list[Group]


class MovePlayerRequest(BaseModel):
    groups: dict[str, Group]
    player_id: str
    from_group_id: str
    to_group_id: str


class PracticeGroupsRequest(BaseModel):
    number_of_groups: int = 0
    seed: Optional[int] = None


class RotationRequest(BaseModel):
    stations: list[RotationDrill] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)
    simultaneous: bool = False
    drill_titles: dict[str, str] = Field(default_factory=dict)


class SyncStationsRequest(BaseModel):
    stations: list[RotationDrill]
    target_duration: Optional[int] = Field(default=None, ge=1)


class GroupsAtTimeRequest(BaseModel):
    rotation_schedule: list[RotationSlot]
    minute: int


class RenameGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=GROUP_NAME_MAX_LENGTH)


class PlayerRef(BaseModel):
    player_id: str


class MoveInPracticeRequest(BaseModel):
    player_id: str
    from_group_id: str
    to_group_id: str
