"""
Writ registration.

Step 1 cleans the typed form into a CreateWritInput; step 2 hands back a
proceeding form pre-filled with the new writ and its FIR date as the first
hearing date.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from writdesk.schemas import (
    CreateWritInput,
    HearingDetails,
    InvestigatingOfficer,
    ProceedingFormInput,
    Respondent,
    Writ,
    WritFormInput,
    WritType,
)
from writdesk.services.case_api_client import CaseApiClient
from writdesk.utils.exceptions import FormValidationError
from writdesk.utils.helpers import format_date
from writdesk.utils.validators import is_blank

logger = logging.getLogger(__name__)

RESPONDENT_REQUIRED = "Please provide at least one respondent with name and designation."
OFFICER_REQUIRED = "Please provide at least one investigating officer with name, rank, and posting."

REQUIRED_FIELDS = (
    ("fir_number", "firNumber"),
    ("writ_number", "writNumber"),
    ("petitioner_name", "petitionerName"),
)


def clean_respondents(respondents: List[Respondent]) -> List[Respondent]:
    cleaned = [
        Respondent(name=(r.name or "").strip(), designation=(r.designation or "").strip())
        for r in respondents
    ]
    return [r for r in cleaned if r.name and r.designation]


def clean_investigating_officers(officers: List[InvestigatingOfficer]) -> List[InvestigatingOfficer]:
    cleaned = []
    for io in officers:
        officer = InvestigatingOfficer(
            name=(io.name or "").strip(),
            rank=(io.rank or "").strip(),
            posting=(io.posting or "").strip(),
            contact=io.contact or 0,
            from_date=(io.from_date or "").strip() or None,
            to_date=(io.to_date or "").strip() or None,
        )
        if officer.name and officer.rank and officer.posting:
            cleaned.append(officer)
    return cleaned


def build_create_writ(form: WritFormInput) -> CreateWritInput:
    errors: Dict[str, str] = {}
    for attr, wire_name in REQUIRED_FIELDS:
        if is_blank(getattr(form, attr)):
            errors[wire_name] = "Required"
    if not form.writ_year:
        errors["writYear"] = "Required"
    if errors:
        raise FormValidationError(errors)

    respondents = clean_respondents(form.respondents)
    if not respondents:
        raise FormValidationError({"respondents": RESPONDENT_REQUIRED}, RESPONDENT_REQUIRED)

    officers = clean_investigating_officers(form.investigating_officers)
    if not officers:
        raise FormValidationError({"investigatingOfficers": OFFICER_REQUIRED}, OFFICER_REQUIRED)

    sections = [s.strip() for s in form.sections if s and s.strip()]
    if not sections and form.under_section:
        sections = [form.under_section]

    return CreateWritInput(
        fir_number=form.fir_number.strip(),
        branch_name=form.branch_name.strip(),
        writ_number=form.writ_number.strip(),
        writ_type=form.writ_type,
        writ_year=form.writ_year,
        writ_sub_type=form.writ_sub_type if form.writ_type == WritType.BAIL else None,
        writ_type_other=form.writ_type_other if form.writ_type == WritType.ANY_OTHER else None,
        under_section=form.under_section,
        act=form.act,
        police_station=form.police_station,
        date_of_fir=form.date_of_fir,
        sections=sections,
        investigating_officers=officers,
        petitioner_name=form.petitioner_name.strip(),
        petitioner_father_name=form.petitioner_father_name,
        petitioner_address=form.petitioner_address,
        petitioner_prayer=form.petitioner_prayer,
        respondents=respondents,
        status=form.status,
        linked_writs=[w for w in form.linked_writs if w],
    )


def first_proceeding_form(writ: Writ, date_of_fir: str = "") -> ProceedingFormInput:
    """Step 2: the new writ's first proceeding, hearing date seeded from the FIR date."""
    return ProceedingFormInput(
        fir=writ.id,
        hearing_details=HearingDetails(date_of_hearing=format_date(date_of_fir or writ.date_of_fir)),
    )


async def register_writ(client: CaseApiClient, form: WritFormInput) -> Tuple[Writ, ProceedingFormInput]:
    payload = build_create_writ(form)
    writ = await client.create_writ(payload)
    logger.info("Registered writ %s (%s)", writ.id, payload.writ_number)
    return writ, first_proceeding_form(writ, form.date_of_fir)
