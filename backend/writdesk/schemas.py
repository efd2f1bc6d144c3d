"""
Pydantic validation schemas

Wire format is camelCase (the case service and the web UI both speak it);
Python attributes are snake_case.
"""
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ServerModel(WireModel):
    """Records received from the case service keep any fields we don't model."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# ============================================================================
# Enumerations
# ============================================================================

class WritType(str, Enum):
    BAIL = "BAIL"
    QUASHING = "QUASHING"
    DIRECTION = "DIRECTION"
    SUSPENSION_OF_SENTENCE = "SUSPENSION_OF_SENTENCE"
    PAYROLL = "PAYROLL"
    ANY_OTHER = "ANY_OTHER"


class BailSubType(str, Enum):
    ANTICIPATORY = "ANTICIPATORY"
    REGULAR = "REGULAR"


class WritLifecycleStatus(str, Enum):
    REGISTERED = "REGISTERED"
    UNDER_INVESTIGATION = "UNDER_INVESTIGATION"
    ONGOING_HEARING = "ONGOING_HEARING"
    CHARGESHEET_FILED = "CHARGESHEET_FILED"
    CLOSED = "CLOSED"
    WITHDRAWN = "WITHDRAWN"


class ProceedingType(str, Enum):
    NOTICE_OF_MOTION = "NOTICE_OF_MOTION"
    TO_FILE_REPLY = "TO_FILE_REPLY"
    ARGUMENT = "ARGUMENT"
    DECISION = "DECISION"
    ANY_OTHER = "ANY_OTHER"


class AttendanceMode(str, Enum):
    BY_FORMAT = "BY_FORMAT"
    BY_PERSON = "BY_PERSON"


class WritDecisionStatus(str, Enum):
    ALLOWED = "ALLOWED"
    PENDING = "PENDING"
    DISMISSED = "DISMISSED"
    WITHDRAWN = "WITHDRAWN"
    DIRECTION = "DIRECTION"


# ============================================================================
# Writ (FIR) Schemas
# ============================================================================

class InvestigatingOfficer(WireModel):
    name: str = ""
    rank: str = ""
    posting: str = ""
    contact: int = 0
    from_date: Optional[str] = Field(None, alias="from")
    to_date: Optional[str] = Field(None, alias="to")

    @field_validator("contact", mode="before")
    @classmethod
    def coerce_contact(cls, v):
        if v in (None, ""):
            return 0
        try:
            return int(v)
        except (TypeError, ValueError):
            return 0


class Respondent(WireModel):
    name: str = ""
    designation: str = ""


class Writ(ServerModel):
    id: str = Field(..., alias="_id")
    fir_number: Optional[str] = None
    branch_name: Optional[str] = None
    branch: Optional[str] = None
    writ_number: Optional[str] = None
    writ_type: Optional[str] = None
    writ_year: Optional[int] = None
    writ_sub_type: Optional[str] = None
    writ_type_other: Optional[str] = None
    under_section: Optional[str] = None
    act: Optional[str] = None
    police_station: Optional[str] = None
    date_of_fir: Optional[str] = Field(None, alias="dateOfFIR")
    date_of_filing: Optional[str] = None
    sections: List[str] = []
    investigating_officers: List[InvestigatingOfficer] = []
    investigating_officer: Optional[str] = None
    petitioner_name: Optional[str] = None
    petitioner_father_name: Optional[str] = None
    petitioner_address: Optional[str] = None
    petitioner_prayer: Optional[str] = None
    respondents: List[Respondent] = []
    status: Optional[str] = None
    linked_writs: List[str] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("sections", "investigating_officers", "linked_writs", mode="before")
    @classmethod
    def coerce_null_lists(cls, v):
        return v or []

    @field_validator("respondents", mode="before")
    @classmethod
    def coerce_respondents(cls, v):
        # Older records store respondents as plain names.
        if not v:
            return []
        return [{"name": item, "designation": ""} if isinstance(item, str) else item for item in v]

    @property
    def display_branch(self) -> str:
        return self.branch_name or self.branch or ""

    @property
    def filed_on(self) -> Optional[str]:
        return self.date_of_fir or self.date_of_filing

    @property
    def is_quashing(self) -> bool:
        return self.writ_type == WritType.QUASHING


class CreateWritInput(WireModel):
    fir_number: str
    branch_name: str = ""
    writ_number: str
    writ_type: WritType = WritType.BAIL
    writ_year: int
    writ_sub_type: Optional[BailSubType] = None
    writ_type_other: Optional[str] = None
    under_section: str = ""
    act: str = ""
    police_station: str = ""
    date_of_fir: str = Field("", alias="dateOfFIR")
    sections: List[str] = []
    investigating_officers: List[InvestigatingOfficer] = []
    petitioner_name: str
    petitioner_father_name: str = ""
    petitioner_address: str = ""
    petitioner_prayer: str = ""
    respondents: List[Respondent] = []
    status: WritLifecycleStatus = WritLifecycleStatus.REGISTERED
    linked_writs: List[str] = []


class WritFormInput(WireModel):
    """Registration form as typed in; blanks allowed until cleaned."""
    fir_number: str = ""
    branch_name: str = ""
    writ_number: str = ""
    writ_type: WritType = WritType.BAIL
    writ_year: Optional[int] = None
    writ_sub_type: Optional[BailSubType] = BailSubType.ANTICIPATORY
    writ_type_other: Optional[str] = ""
    under_section: str = ""
    act: str = ""
    police_station: str = ""
    date_of_fir: str = Field("", alias="dateOfFIR")
    sections: List[str] = []
    investigating_officers: List[InvestigatingOfficer] = []
    petitioner_name: str = ""
    petitioner_father_name: str = ""
    petitioner_address: str = ""
    petitioner_prayer: str = ""
    respondents: List[Respondent] = []
    status: WritLifecycleStatus = WritLifecycleStatus.REGISTERED
    linked_writs: List[str] = []

    @field_validator("sections", "investigating_officers", "respondents", "linked_writs", mode="before")
    @classmethod
    def coerce_null_lists(cls, v):
        return v or []

    @field_validator("writ_sub_type", "writ_year", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return None if v == "" else v


# ============================================================================
# Proceeding Schemas
# ============================================================================

class PersonDetails(WireModel):
    name: Optional[str] = ""
    rank: Optional[str] = ""
    mobile: Optional[str] = ""


class HearingDetails(WireModel):
    date_of_hearing: Optional[str] = ""
    judge_name: Optional[str] = ""
    court_number: Optional[str] = ""


class NoticeOfMotionEntry(WireModel):
    attendance_mode: AttendanceMode = AttendanceMode.BY_FORMAT
    format_submitted: Optional[bool] = False
    format_filled_by: Optional[PersonDetails] = None
    appearing_ag: Optional[PersonDetails] = Field(None, alias="appearingAG")
    attending_officer: Optional[PersonDetails] = None
    investigating_officer: Optional[PersonDetails] = None
    next_date_of_hearing: Optional[str] = ""
    officer_deputed_for_reply: Optional[str] = ""
    vetting_officer_details: Optional[str] = ""
    reply_filed: Optional[bool] = False
    reply_filing_date: Optional[str] = ""
    advocate_general_name: Optional[str] = ""
    reply_scrutinized_by_hc: Optional[bool] = Field(False, alias="replyScrutinizedByHC")


class ReplyTrackingDetails(WireModel):
    proceeding_in_court: Optional[str] = ""
    order_in_short: Optional[str] = ""
    next_actionable_point: Optional[str] = ""
    next_date_of_hearing: Optional[str] = ""


class ArgumentDetails(WireModel):
    details: Optional[str] = ""
    next_date_of_hearing: Optional[str] = ""


class DecisionDetails(WireModel):
    writ_status: WritDecisionStatus = WritDecisionStatus.PENDING
    remarks: Optional[str] = ""
    decision_by_court: Optional[str] = ""
    date_of_decision: Optional[str] = ""


class Attachment(WireModel):
    file_name: str
    file_url: Optional[str] = None


class Proceeding(ServerModel):
    id: str = Field(..., alias="_id")
    fir: Union[Writ, str, None] = None
    sequence: Optional[int] = None
    type: str = ProceedingType.NOTICE_OF_MOTION.value
    summary: Optional[str] = None
    details: Optional[str] = None
    hearing_details: Optional[HearingDetails] = None
    notice_of_motion: List[NoticeOfMotionEntry] = []
    reply_tracking: Optional[ReplyTrackingDetails] = None
    argument_details: Optional[ArgumentDetails] = None
    decision_details: Optional[DecisionDetails] = None
    draft: bool = False
    created_by: Optional[str] = None
    attachments: List[Attachment] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("notice_of_motion", mode="before")
    @classmethod
    def coerce_notice_of_motion(cls, v):
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v

    @field_validator("attachments", mode="before")
    @classmethod
    def coerce_attachments(cls, v):
        return v or []

    @field_validator("draft", mode="before")
    @classmethod
    def coerce_draft(cls, v):
        return bool(v)

    @property
    def writ(self) -> Optional[Writ]:
        return self.fir if isinstance(self.fir, Writ) else None


# ---------------------------------------------------------------------------
# Outbound proceeding payload: one variant per proceeding type
# ---------------------------------------------------------------------------

class ProceedingPayloadBase(WireModel):
    fir: str
    summary: Optional[str] = None
    details: Optional[str] = None
    hearing_details: HearingDetails
    draft: bool = False

    def to_wire(self) -> Dict[str, Any]:
        data = super().to_wire()
        entries = data.get("noticeOfMotion")
        # The case service takes a bare object for a single entry.
        if isinstance(entries, list) and len(entries) == 1:
            data["noticeOfMotion"] = entries[0]
        return data


class NoticeOfMotionPayload(ProceedingPayloadBase):
    type: Literal["NOTICE_OF_MOTION"] = "NOTICE_OF_MOTION"
    notice_of_motion: List[NoticeOfMotionEntry]


class ToFileReplyPayload(ProceedingPayloadBase):
    type: Literal["TO_FILE_REPLY"] = "TO_FILE_REPLY"
    notice_of_motion: List[NoticeOfMotionEntry]
    reply_tracking: ReplyTrackingDetails


class ArgumentPayload(ProceedingPayloadBase):
    type: Literal["ARGUMENT"] = "ARGUMENT"
    argument_details: ArgumentDetails


class DecisionPayload(ProceedingPayloadBase):
    type: Literal["DECISION"] = "DECISION"
    decision_details: DecisionDetails


class AnyOtherPayload(ProceedingPayloadBase):
    type: Literal["ANY_OTHER"] = "ANY_OTHER"


class ProceedingFormInput(WireModel):
    """Raw form state posted by the UI; the form service decides what is sent."""
    fir: str = ""
    type: ProceedingType = ProceedingType.NOTICE_OF_MOTION
    summary: Optional[str] = ""
    details: Optional[str] = ""
    hearing_details: HearingDetails = Field(default_factory=HearingDetails)
    notice_of_motion: List[NoticeOfMotionEntry] = []
    reply_tracking: ReplyTrackingDetails = Field(default_factory=ReplyTrackingDetails)
    argument_details: ArgumentDetails = Field(default_factory=ArgumentDetails)
    decision_details: DecisionDetails = Field(default_factory=DecisionDetails)
    draft: bool = False

    @field_validator("notice_of_motion", mode="before")
    @classmethod
    def coerce_notice_of_motion(cls, v):
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v


# ============================================================================
# View Schemas
# ============================================================================

class UpcomingHearing(WireModel):
    proceeding: Proceeding
    writ_id: str
    hearing_date: str
    days_until: int
    urgent: bool
    type_label: str


class ProceedingStats(WireModel):
    total: int
    upcoming: int
    by_type: Dict[str, int]


class ProceedingListResponse(WireModel):
    items: List[Proceeding]
    total: int
    stats: ProceedingStats
    stale: bool = False
    error: Optional[str] = None


class WritListResponse(WireModel):
    items: List[Writ]
    total: int
    visible: int
    can_show_more: bool
    drafts: List[str] = []
    stale: bool = False
    error: Optional[str] = None


class WritPickerResponse(WireModel):
    available: List[Writ]
    with_drafts: List[Writ]


class WritDetailResponse(WireModel):
    writ: Writ
    writ_type_label: str
    timeline: List[Proceeding]
    available_types: List[ProceedingType]
    stale: bool = False
    error: Optional[str] = None


class WritSearchResponse(WireModel):
    query: str
    results: List[Writ]
    superseded: bool = False


class WritCreatedResponse(WireModel):
    writ: Writ
    proceeding_form: ProceedingFormInput


class DraftResumeResponse(WireModel):
    writ: Writ
    draft: Proceeding
    form: ProceedingFormInput
    available_types: List[ProceedingType]


# ============================================================================
# Dashboard Schemas
# ============================================================================

class StatusCount(WireModel):
    status: str
    count: int = 0


class DashboardMetrics(WireModel):
    total_cases: int = 0
    closed_cases: int = 0
    ongoing_cases: int = 0
    status_counts: List[StatusCount] = []


class BranchCount(WireModel):
    branch: str = ""
    count: int = 0


class PieSegment(WireModel):
    key: str
    label: str
    count: int
    percent: float
    color: str
    start_angle: float
    end_angle: float


class BranchBar(WireModel):
    label: str
    count: int
    value: int
    percent: int
    color: str


class RecentWrit(WireModel):
    id: str
    writ_number: Optional[str] = None
    fir_number: Optional[str] = None
    petitioner_name: Optional[str] = None
    status_label: str
    filed_on: Optional[str] = None


class DashboardResponse(WireModel):
    total_cases: int
    ongoing_cases: int
    closed_cases: int
    status_counts: List[StatusCount]
    pie_segments: List[PieSegment]
    branch_bars: List[BranchBar]
    recent_writs: List[RecentWrit]


# ============================================================================
# Auth Schemas
# ============================================================================

class Credentials(BaseModel):
    email: str
    password: str = Field(..., min_length=1)


class AuthResponse(WireModel):
    status: int = 200
    logged: bool = False
    token: Optional[str] = None
    message: Optional[str] = None
