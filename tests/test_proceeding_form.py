import asyncio

import pytest

from conftest import make_proceeding, make_writ, proceeding_data, json_body
from writdesk.schemas import (
    AnyOtherPayload,
    ArgumentPayload,
    AttendanceMode,
    DecisionPayload,
    NoticeOfMotionPayload,
    PersonDetails,
    ProceedingType,
    ToFileReplyPayload,
)
from writdesk.services.proceeding_form import FormState, ProceedingForm
from writdesk.utils.exceptions import AttachmentValidationError, CaseApiRequestError, FormValidationError
from writdesk.utils.helpers import format_date, utcnow

KB = 1024


def person(name="A Singh", rank="SI", mobile="9876543210") -> dict:
    return {"name": name, "rank": rank, "mobile": mobile}


def filled_by_format_form(writ=None) -> ProceedingForm:
    form = ProceedingForm(writ or make_writ("W1"))
    form.select_type(ProceedingType.NOTICE_OF_MOTION)
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    form.update_notice_entry(0, attendance_mode=AttendanceMode.BY_FORMAT, format_submitted=True, next_date_of_hearing="2024-04-01")
    form.update_notice_person(0, "format_filled_by", **person())
    form.update_notice_person(0, "appearing_ag", **person("AG Sharma", "AAG"))
    return form


def test_states_progress():
    form = ProceedingForm()
    assert form.state == FormState.WRIT_UNSELECTED
    form.select_writ(make_writ("W1"))
    assert form.state == FormState.WRIT_SELECTED
    form.select_type("ANY_OTHER")
    assert form.state == FormState.TYPE_SELECTED
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    assert form.state == FormState.READY


def test_argument_not_offered_for_non_quashing_writ():
    form = ProceedingForm(make_writ("W1", writType="BAIL"))
    assert ProceedingType.ARGUMENT not in form.available_types()
    assert form.select_type(ProceedingType.ARGUMENT) == ProceedingType.NOTICE_OF_MOTION
    assert form.type == ProceedingType.NOTICE_OF_MOTION


def test_selecting_non_quashing_writ_resets_argument():
    form = ProceedingForm(make_writ("Q1", writType="QUASHING"))
    assert ProceedingType.ARGUMENT in form.available_types()
    form.select_type(ProceedingType.ARGUMENT)
    assert form.type == ProceedingType.ARGUMENT

    form.select_writ(make_writ("B1", writType="BAIL"))
    assert form.type == ProceedingType.NOTICE_OF_MOTION


def test_validate_requires_writ_and_hearing_date():
    form = ProceedingForm()
    with pytest.raises(FormValidationError) as exc:
        form.validate()
    assert exc.value.message == "Please fill in required fields (FIR and Hearing Date)"
    assert "fir" in exc.value.errors
    assert "hearingDetails.dateOfHearing" in exc.value.errors


def test_by_format_entry_requires_its_people():
    form = ProceedingForm(make_writ("W1"))
    form.select_type(ProceedingType.NOTICE_OF_MOTION)
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    errors = form.errors()
    assert "noticeOfMotion[0].formatFilledBy.name" in errors
    assert "noticeOfMotion[0].appearingAG.mobile" in errors
    assert "noticeOfMotion[0].nextDateOfHearing" in errors
    assert not any("attendingOfficer" in key for key in errors)


def test_by_person_entry_requires_officers():
    form = filled_by_format_form()
    form.update_notice_entry(0, attendance_mode=AttendanceMode.BY_PERSON)
    errors = form.errors()
    assert "noticeOfMotion[0].investigatingOfficer.rank" in errors
    assert "noticeOfMotion[0].attendingOfficer.name" in errors
    assert not any("formatFilledBy" in key for key in errors)


def test_by_format_payload_omits_other_people():
    payload = filled_by_format_form().build_payload()

    assert isinstance(payload, NoticeOfMotionPayload)
    wire = payload.to_wire()
    assert wire["type"] == "NOTICE_OF_MOTION"
    entry = wire["noticeOfMotion"]
    assert isinstance(entry, dict)
    assert entry["formatFilledBy"]["name"] == "A Singh"
    assert entry["appearingAG"]["name"] == "AG Sharma"
    assert "attendingOfficer" not in entry
    assert "investigatingOfficer" not in entry
    assert "officerDeputedForReply" not in entry
    assert "replyTracking" not in wire
    assert "argumentDetails" not in wire


def test_multiple_entries_are_sent_as_a_list():
    form = filled_by_format_form()
    index = form.add_notice_entry()
    form.update_notice_entry(index, next_date_of_hearing="2024-05-01")
    form.update_notice_person(index, "format_filled_by", **person())
    form.update_notice_person(index, "appearing_ag", **person())
    wire = form.build_payload().to_wire()
    assert isinstance(wire["noticeOfMotion"], list)
    assert len(wire["noticeOfMotion"]) == 2


def test_last_entry_cannot_be_removed():
    form = ProceedingForm()
    form.remove_notice_entry(0)
    assert len(form.notice_entries) == 1
    form.add_notice_entry()
    form.remove_notice_entry(1)
    assert len(form.notice_entries) == 1


def test_unknown_person_role_is_rejected():
    with pytest.raises(ValueError):
        ProceedingForm().update_notice_person(0, "judge", name="x")


def test_to_file_reply_requirements_and_payload():
    form = ProceedingForm(make_writ("W1"))
    form.select_type(ProceedingType.TO_FILE_REPLY)
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    errors = form.errors()
    for key in (
        "noticeOfMotion[0].officerDeputedForReply",
        "noticeOfMotion[0].advocateGeneralName",
        "noticeOfMotion[0].vettingOfficerDetails",
        "noticeOfMotion[0].investigatingOfficer.name",
        "replyTracking.proceedingInCourt",
        "replyTracking.orderInShort",
        "replyTracking.nextDateOfHearing",
        "replyTracking.nextActionablePoint",
    ):
        assert key in errors

    form.update_notice_entry(
        0,
        officer_deputed_for_reply="DSP Legal",
        advocate_general_name="AG Sharma",
        vetting_officer_details="SP HQ",
        reply_filed=True,
    )
    form.update_notice_person(0, "investigating_officer", **person())
    form.reply_tracking = form.reply_tracking.model_copy(update={
        "proceeding_in_court": "Reply taken on record",
        "order_in_short": "Adjourned",
        "next_date_of_hearing": "2024-04-10",
        "next_actionable_point": "File status report",
    })

    payload = form.build_payload()
    assert isinstance(payload, ToFileReplyPayload)
    wire = payload.to_wire()
    assert wire["replyTracking"]["orderInShort"] == "Adjourned"
    assert wire["noticeOfMotion"]["investigatingOfficer"]["name"] == "A Singh"
    assert "formatFilledBy" not in wire["noticeOfMotion"]


def test_argument_and_decision_payloads():
    form = ProceedingForm(make_writ("Q1", writType="QUASHING"))
    form.select_type(ProceedingType.ARGUMENT)
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    assert "argumentDetails.details" in form.errors()
    form.argument_details = form.argument_details.model_copy(update={"details": "Heard", "next_date_of_hearing": "2024-04-01"})
    payload = form.build_payload()
    assert isinstance(payload, ArgumentPayload)
    assert "noticeOfMotion" not in payload.to_wire()

    form.select_type(ProceedingType.DECISION)
    payload = form.build_payload()
    assert isinstance(payload, DecisionPayload)
    assert payload.to_wire()["decisionDetails"]["writStatus"] == "PENDING"
    assert "argumentDetails" not in payload.to_wire()


def test_any_other_sends_no_sub_objects():
    form = ProceedingForm(make_writ("W1"))
    form.select_type(ProceedingType.ANY_OTHER)
    form.hearing = form.hearing.model_copy(update={"date_of_hearing": "2024-03-10"})
    wire = form.build_payload().to_wire()
    assert isinstance(form.build_payload(), AnyOtherPayload)
    assert set(wire) <= {"fir", "type", "summary", "details", "hearingDetails", "draft"}


def test_draft_skips_type_rules_and_defaults_hearing_date_to_today():
    form = ProceedingForm(make_writ("W1"))
    form.select_type(ProceedingType.TO_FILE_REPLY)
    payload = form.build_payload(draft=True)
    assert payload.draft is True
    assert payload.hearing_details.date_of_hearing == format_date(utcnow())


def test_draft_still_needs_a_writ():
    with pytest.raises(FormValidationError):
        ProceedingForm().build_payload(draft=True)


def test_rejected_attachment_clears_previous_file():
    form = ProceedingForm(make_writ("W1"))
    form.attach_file("order.pdf", "application/pdf", b"x" * (10 * KB))
    assert form.attachment is not None

    with pytest.raises(AttachmentValidationError):
        form.attach_file("big.pdf", "application/pdf", b"x" * (251 * KB))
    assert form.attachment is None

    with pytest.raises(AttachmentValidationError):
        form.attach_file("notes.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", b"x")
    assert form.attachment is None


def test_submit_success_prepends_and_resets(fake_service, session, make_client):
    fake_service.add("POST", "/v1/proceedings", body=proceeding_data("new", "W1"))
    form = filled_by_format_form()
    listing = [make_proceeding("old", "W1")]

    async def run():
        async with make_client(session) as client:
            return await form.submit(client, proceedings=listing, preserve_writ=True)

    created = asyncio.run(run())

    assert created.id == "new"
    assert [p.id for p in listing] == ["new", "old"]
    assert form.state == FormState.SUBMITTED
    assert form.writ_id == "W1"
    assert form.notice_entries[0].format_filled_by.name == ""
    sent = json_body(fake_service.calls("POST", "/v1/proceedings")[0])
    assert sent["fir"] == "W1"
    assert sent["draft"] is False


def test_submit_failure_keeps_state(fake_service, session, make_client):
    fake_service.add("POST", "/v1/proceedings", body={"message": "Writ is closed"}, status_code=400)
    form = filled_by_format_form()

    async def run():
        async with make_client(session) as client:
            await form.submit(client)

    with pytest.raises(CaseApiRequestError) as exc:
        asyncio.run(run())
    assert exc.value.message == "Writ is closed"
    assert form.writ_id == "W1"
    assert form.notice_entries[0].format_filled_by.name == "A Singh"
    assert form.state == FormState.READY


def test_submit_with_attachment_goes_multipart(fake_service, session, make_client):
    fake_service.add("POST", "/v1/proceedings", body=proceeding_data("new", "W1"))
    form = filled_by_format_form()
    form.attach_file("order.pdf", "application/pdf", b"%PDF-1.4")

    async def run():
        async with make_client(session) as client:
            await form.submit(client)

    asyncio.run(run())
    request = fake_service.calls("POST", "/v1/proceedings")[0]
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="orderOfProceeding"' in body
    assert b'filename="order.pdf"' in body
    assert b'name="hearingDetails"' in body


def test_from_draft_normalises_entries_and_dates():
    draft = make_proceeding(
        "d1",
        "W1",
        type="NOTICE_OF_MOTION",
        draft=True,
        hearingDetails={"dateOfHearing": "2024-03-10T00:00:00.000Z"},
        noticeOfMotion={"attendanceMode": "BY_PERSON", "investigatingOfficer": person()},
    )
    form = ProceedingForm.from_draft(draft, make_writ("W1"))

    assert form.writ_id == "W1"
    assert form.hearing.date_of_hearing == "2024-03-10"
    assert len(form.notice_entries) == 1
    entry = form.notice_entries[0]
    assert entry.attendance_mode == AttendanceMode.BY_PERSON
    assert entry.investigating_officer.name == "A Singh"
    assert entry.attending_officer == PersonDetails()

    restored = form.to_input()
    assert restored.fir == "W1"
    assert restored.type == ProceedingType.NOTICE_OF_MOTION


def test_from_draft_argument_on_bail_writ_falls_back():
    draft = make_proceeding("d1", "W1", type="ARGUMENT", draft=True)
    form = ProceedingForm.from_draft(draft, make_writ("W1", writType="BAIL"))
    assert form.type == ProceedingType.NOTICE_OF_MOTION


def test_writ_without_type_falls_back_from_argument():
    form = ProceedingForm(make_writ("W2", writType=None))
    assert ProceedingType.ARGUMENT not in form.available_types()
    assert form.select_type(ProceedingType.ARGUMENT) == ProceedingType.NOTICE_OF_MOTION

    unselected = ProceedingForm()
    assert ProceedingType.ARGUMENT in unselected.available_types()
