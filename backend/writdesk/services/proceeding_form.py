"""
services/proceeding_form.py

State machine behind the "new proceeding" form.

    writ unselected -> writ selected -> type selected -> fields valid -> submitted

The selected type decides which payload variant is built; sub-objects that
don't belong to it are never sent. ARGUMENT is only offered for quashing
writs: selecting a non-quashing writ (or asking for ARGUMENT on one) falls
back to NOTICE_OF_MOTION.

Used by:
  - api/v1/endpoints/proceedings.py (create / save draft)
  - api/v1/endpoints/writs.py (resume draft, step 2 of writ registration)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, MutableSequence, Optional, Tuple

from writdesk.schemas import (
    AnyOtherPayload,
    ArgumentDetails,
    ArgumentPayload,
    AttendanceMode,
    DecisionDetails,
    DecisionPayload,
    HearingDetails,
    NoticeOfMotionEntry,
    NoticeOfMotionPayload,
    PersonDetails,
    Proceeding,
    ProceedingFormInput,
    ProceedingPayloadBase,
    ProceedingType,
    ReplyTrackingDetails,
    ToFileReplyPayload,
    Writ,
    WritType,
)
from writdesk.services.case_api_client import CaseApiClient, FileTuple
from writdesk.utils.exceptions import AttachmentValidationError, CaseApiError, FormValidationError
from writdesk.utils.helpers import format_date, utcnow
from writdesk.utils.validators import is_blank, validate_attachment

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    WRIT_UNSELECTED = "WRIT_UNSELECTED"
    WRIT_SELECTED = "WRIT_SELECTED"
    TYPE_SELECTED = "TYPE_SELECTED"
    READY = "READY"
    SUBMITTED = "SUBMITTED"


PERSON_ROLES = ("format_filled_by", "appearing_ag", "attending_officer", "investigating_officer")
PERSON_FIELDS = ("name", "rank", "mobile")

# People whose name/rank/mobile are required for each attendance mode.
MODE_PERSONS: Dict[AttendanceMode, Tuple[str, ...]] = {
    AttendanceMode.BY_FORMAT: ("format_filled_by", "appearing_ag"),
    AttendanceMode.BY_PERSON: ("investigating_officer", "attending_officer", "appearing_ag"),
}

REPLY_ENTRY_FIELDS = ("officer_deputed_for_reply", "advocate_general_name", "vetting_officer_details")
REPLY_ENTRY_FLAGS = ("reply_filed", "reply_filing_date", "reply_scrutinized_by_hc")
REPLY_TRACKING_FIELDS = ("proceeding_in_court", "order_in_short", "next_date_of_hearing", "next_actionable_point")

WIRE_NAMES = {
    "format_filled_by": "formatFilledBy",
    "appearing_ag": "appearingAG",
    "attending_officer": "attendingOfficer",
    "investigating_officer": "investigatingOfficer",
    "next_date_of_hearing": "nextDateOfHearing",
    "officer_deputed_for_reply": "officerDeputedForReply",
    "advocate_general_name": "advocateGeneralName",
    "vetting_officer_details": "vettingOfficerDetails",
    "proceeding_in_court": "proceedingInCourt",
    "order_in_short": "orderInShort",
    "next_actionable_point": "nextActionablePoint",
}


def new_notice_entry() -> NoticeOfMotionEntry:
    return NoticeOfMotionEntry(
        attendance_mode=AttendanceMode.BY_FORMAT,
        format_filled_by=PersonDetails(),
        appearing_ag=PersonDetails(),
        attending_officer=PersonDetails(),
        investigating_officer=PersonDetails(),
    )


def _wire(name: str) -> str:
    return WIRE_NAMES.get(name, name)


class ProceedingForm:
    def __init__(self, writ: Optional[Writ] = None) -> None:
        self.reset()
        if writ is not None:
            self.select_writ(writ)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def reset(self, preserve_writ: bool = False) -> None:
        writ_id = self.writ_id if preserve_writ else None
        writ_type = self.writ_type if preserve_writ else None

        self.writ_id: Optional[str] = writ_id
        self.writ_type: Optional[str] = writ_type
        self.type: ProceedingType = ProceedingType.NOTICE_OF_MOTION
        self.summary: str = ""
        self.details: str = ""
        self.hearing = HearingDetails()
        self.notice_entries: List[NoticeOfMotionEntry] = [new_notice_entry()]
        self.reply_tracking = ReplyTrackingDetails()
        self.argument_details = ArgumentDetails()
        self.decision_details = DecisionDetails()
        self.attachment: Optional[FileTuple] = None
        self.submitted = False
        self._type_selected = False

    @property
    def state(self) -> FormState:
        if self.submitted:
            return FormState.SUBMITTED
        if not self.writ_id:
            return FormState.WRIT_UNSELECTED
        if not self._type_selected:
            return FormState.WRIT_SELECTED
        if self.errors():
            return FormState.TYPE_SELECTED
        return FormState.READY

    def _argument_allowed(self) -> bool:
        # Before a writ is chosen every type is offered; after, a writ with no
        # recorded type is treated as non-quashing.
        return self.writ_id is None or self.writ_type == WritType.QUASHING

    def available_types(self) -> List[ProceedingType]:
        return [
            t for t in ProceedingType
            if t != ProceedingType.ARGUMENT or self._argument_allowed()
        ]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_writ(self, writ: Writ) -> None:
        self.writ_id = writ.id
        self.writ_type = writ.writ_type
        self.submitted = False
        if self.type == ProceedingType.ARGUMENT and not self._argument_allowed():
            logger.info("Writ %s is not a quashing writ; falling back to notice of motion", writ.id)
            self.type = ProceedingType.NOTICE_OF_MOTION

    def select_type(self, proceeding_type) -> ProceedingType:
        proceeding_type = ProceedingType(proceeding_type)
        if proceeding_type == ProceedingType.ARGUMENT and not self._argument_allowed():
            proceeding_type = ProceedingType.NOTICE_OF_MOTION
        self.type = proceeding_type
        self._type_selected = True
        self.submitted = False
        if proceeding_type in (ProceedingType.NOTICE_OF_MOTION, ProceedingType.TO_FILE_REPLY) and not self.notice_entries:
            self.notice_entries = [new_notice_entry()]
        return proceeding_type

    def add_notice_entry(self) -> int:
        self.notice_entries.append(new_notice_entry())
        return len(self.notice_entries) - 1

    def remove_notice_entry(self, index: int) -> None:
        if len(self.notice_entries) <= 1:
            return
        del self.notice_entries[index]

    def update_notice_entry(self, index: int, **fields) -> NoticeOfMotionEntry:
        entry = self.notice_entries[index]
        self.notice_entries[index] = entry.model_copy(update=fields)
        return self.notice_entries[index]

    def update_notice_person(self, index: int, role: str, **fields) -> PersonDetails:
        if role not in PERSON_ROLES:
            raise ValueError(f"Unknown person role: {role}")
        entry = self.notice_entries[index]
        person = (getattr(entry, role) or PersonDetails()).model_copy(update=fields)
        self.notice_entries[index] = entry.model_copy(update={role: person})
        return person

    def attach_file(self, filename: str, content_type: Optional[str], content: bytes) -> None:
        """Validate and hold the order-of-proceeding file; a rejected file clears the slot."""
        try:
            validate_attachment(len(content), content_type)
        except AttachmentValidationError:
            self.attachment = None
            raise
        self.attachment = (filename, content, content_type or "application/octet-stream")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _person_errors(self, prefix: str, person: Optional[PersonDetails]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for field in PERSON_FIELDS:
            if person is None or is_blank(getattr(person, field)):
                errors[f"{prefix}.{field}"] = "Required"
        return errors

    def _notice_entry_errors(self, index: int, entry: NoticeOfMotionEntry) -> Dict[str, str]:
        prefix = f"noticeOfMotion[{index}]"
        errors: Dict[str, str] = {}
        for role in MODE_PERSONS[entry.attendance_mode]:
            errors.update(self._person_errors(f"{prefix}.{_wire(role)}", getattr(entry, role)))
        if is_blank(entry.next_date_of_hearing):
            errors[f"{prefix}.nextDateOfHearing"] = "Required"
        return errors

    def _reply_entry_errors(self, index: int, entry: NoticeOfMotionEntry) -> Dict[str, str]:
        prefix = f"noticeOfMotion[{index}]"
        errors: Dict[str, str] = {}
        for field in REPLY_ENTRY_FIELDS:
            if is_blank(getattr(entry, field)):
                errors[f"{prefix}.{_wire(field)}"] = "Required"
        errors.update(
            self._person_errors(f"{prefix}.investigatingOfficer", entry.investigating_officer)
        )
        return errors

    def errors(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if is_blank(self.writ_id):
            errors["fir"] = "Required"
        if is_blank(self.hearing.date_of_hearing):
            errors["hearingDetails.dateOfHearing"] = "Required"

        if self.type == ProceedingType.NOTICE_OF_MOTION:
            if not self.notice_entries:
                errors["noticeOfMotion"] = "At least one entry is required"
            for index, entry in enumerate(self.notice_entries):
                errors.update(self._notice_entry_errors(index, entry))

        elif self.type == ProceedingType.TO_FILE_REPLY:
            if not self.notice_entries:
                errors["noticeOfMotion"] = "At least one entry is required"
            for index, entry in enumerate(self.notice_entries):
                errors.update(self._reply_entry_errors(index, entry))
            for field in REPLY_TRACKING_FIELDS:
                if is_blank(getattr(self.reply_tracking, field)):
                    errors[f"replyTracking.{_wire(field)}"] = "Required"

        elif self.type == ProceedingType.ARGUMENT:
            if not self._argument_allowed():
                errors["type"] = "Argument is only available for quashing writs"
            if is_blank(self.argument_details.details):
                errors["argumentDetails.details"] = "Required"
            if is_blank(self.argument_details.next_date_of_hearing):
                errors["argumentDetails.nextDateOfHearing"] = "Required"

        return errors

    def validate(self) -> None:
        errors = self.errors()
        if errors:
            if "fir" in errors or "hearingDetails.dateOfHearing" in errors:
                message = "Please fill in required fields (FIR and Hearing Date)"
            else:
                message = "Please fill in required fields"
            raise FormValidationError(errors, message)

    # ------------------------------------------------------------------
    # Payload
    # ------------------------------------------------------------------

    def _shape_notice_entry(self, entry: NoticeOfMotionEntry) -> NoticeOfMotionEntry:
        keep = set(MODE_PERSONS[entry.attendance_mode])
        update = {role: None for role in PERSON_ROLES if role not in keep}
        update.update({field: None for field in REPLY_ENTRY_FIELDS + REPLY_ENTRY_FLAGS})
        if entry.attendance_mode != AttendanceMode.BY_FORMAT:
            update["format_submitted"] = None
        return entry.model_copy(update=update)

    def _shape_reply_entry(self, entry: NoticeOfMotionEntry) -> NoticeOfMotionEntry:
        update = {role: None for role in PERSON_ROLES if role != "investigating_officer"}
        update["format_submitted"] = None
        return entry.model_copy(update=update)

    def build_payload(self, draft: bool = False) -> ProceedingPayloadBase:
        """
        Assemble the outbound payload for the selected type. Final submissions
        must validate; drafts only need a writ and get today's date when the
        hearing date is blank.
        """
        if draft:
            if is_blank(self.writ_id):
                raise FormValidationError({"fir": "Required"}, "FIR ID is missing. Please go back and try again.")
        else:
            self.validate()

        hearing = self.hearing
        if draft and is_blank(hearing.date_of_hearing):
            hearing = hearing.model_copy(update={"date_of_hearing": format_date(utcnow())})

        common = dict(
            fir=self.writ_id,
            summary=self.summary or None,
            details=self.details or None,
            hearing_details=hearing,
            draft=draft,
        )

        if self.type == ProceedingType.NOTICE_OF_MOTION:
            return NoticeOfMotionPayload(
                notice_of_motion=[self._shape_notice_entry(e) for e in self.notice_entries],
                **common,
            )
        if self.type == ProceedingType.TO_FILE_REPLY:
            return ToFileReplyPayload(
                notice_of_motion=[self._shape_reply_entry(e) for e in self.notice_entries],
                reply_tracking=self.reply_tracking,
                **common,
            )
        if self.type == ProceedingType.ARGUMENT:
            return ArgumentPayload(argument_details=self.argument_details, **common)
        if self.type == ProceedingType.DECISION:
            return DecisionPayload(decision_details=self.decision_details, **common)
        return AnyOtherPayload(**common)

    async def submit(
        self,
        client: CaseApiClient,
        draft: bool = False,
        preserve_writ: bool = False,
        proceedings: Optional[MutableSequence[Proceeding]] = None,
    ) -> Proceeding:
        """
        Send the proceeding. On success the created record is prepended to
        `proceedings` (when given) and the form resets; on failure the form is
        left untouched for correction.
        """
        payload = self.build_payload(draft=draft)
        try:
            created = await client.create_proceeding(payload, self.attachment)
        except CaseApiError as exc:
            logger.warning("Proceeding submission failed for writ %s: %s", self.writ_id, exc.message)
            raise

        logger.info(
            "Proceeding %s created for writ %s (type=%s, draft=%s)",
            created.id, self.writ_id, self.type.value, draft,
        )
        if proceedings is not None:
            proceedings.insert(0, created)
        self.reset(preserve_writ=preserve_writ)
        self.submitted = True
        return created

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def apply_input(self, data: ProceedingFormInput) -> None:
        self.writ_id = data.fir or self.writ_id
        self.summary = data.summary or ""
        self.details = data.details or ""
        self.hearing = data.hearing_details.model_copy()
        self.notice_entries = [e.model_copy() for e in data.notice_of_motion] or [new_notice_entry()]
        self.reply_tracking = data.reply_tracking.model_copy()
        self.argument_details = data.argument_details.model_copy()
        self.decision_details = data.decision_details.model_copy()
        self.select_type(data.type)

    def to_input(self) -> ProceedingFormInput:
        return ProceedingFormInput(
            fir=self.writ_id or "",
            type=self.type,
            summary=self.summary,
            details=self.details,
            hearing_details=self.hearing,
            notice_of_motion=list(self.notice_entries),
            reply_tracking=self.reply_tracking,
            argument_details=self.argument_details,
            decision_details=self.decision_details,
        )

    @classmethod
    def from_input(cls, data: ProceedingFormInput, writ: Optional[Writ] = None) -> "ProceedingForm":
        form = cls()
        if writ is not None:
            form.select_writ(writ)
        form.apply_input(data)
        return form

    @classmethod
    def from_draft(cls, draft: Proceeding, writ: Optional[Writ] = None) -> "ProceedingForm":
        """Rebuild form state from a saved draft so it can be resumed."""
        form = cls()
        writ = writ or draft.writ
        if writ is not None:
            form.select_writ(writ)
        else:
            form.writ_id = draft.fir if isinstance(draft.fir, str) else None

        hearing = draft.hearing_details or HearingDetails()
        form.hearing = HearingDetails(
            date_of_hearing=format_date(hearing.date_of_hearing),
            judge_name=hearing.judge_name or "",
            court_number=hearing.court_number or "",
        )
        form.summary = draft.summary or ""
        form.details = draft.details or ""
        if draft.notice_of_motion:
            form.notice_entries = [
                entry.model_copy(update={
                    role: getattr(entry, role) or PersonDetails() for role in PERSON_ROLES
                })
                for entry in draft.notice_of_motion
            ]
        if draft.reply_tracking:
            form.reply_tracking = draft.reply_tracking.model_copy()
        if draft.argument_details:
            form.argument_details = draft.argument_details.model_copy()
        if draft.decision_details:
            form.decision_details = draft.decision_details.model_copy()
        try:
            form.select_type(draft.type)
        except ValueError:
            logger.warning("Draft %s has unknown type %r", draft.id, draft.type)
            form.select_type(ProceedingType.NOTICE_OF_MOTION)
        return form
