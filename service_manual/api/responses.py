"""
Response building and error mapping shared by the routes.
"""

from collections.abc import Sequence
from typing import Any, NoReturn, Protocol

from fastapi import HTTPException, status

from service_manual.api.schemas import (
    CommentResponse,
    EditionResponse,
    GuideDetailResponse,
    GuideResponse,
    ThreadEventResponse,
)
from service_manual.components.editions import EditionStateMachine
from service_manual.components.guides import GuideEditions
from service_manual.components.thread import (
    AssignedToEvent,
    CommentEvent,
    NewDraftEvent,
    StateChangeEvent,
    ThreadEvent,
)
from service_manual.domain.entities import Edition, Guide

_NOT_FOUND_CODES = {"not_found", "guide_not_found", "edition_not_found"}


class _FieldError(Protocol):
    code: str
    message: str
    field: str | None


def raise_for_errors(errors: Sequence[_FieldError]) -> NoReturn:
    """
    Raise the HTTP error matching a failed component output.

    404 for missing entities, 403 for workflow actions that are closed,
    422 for everything else.
    """
    detail: list[dict[str, Any]] = [
        {"code": e.code, "message": e.message, "field": e.field} for e in errors
    ]
    codes = {e.code for e in errors}

    if codes & _NOT_FOUND_CODES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    if "illegal_transition" in codes:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


def edition_response(edition: Edition, state_machine: EditionStateMachine) -> EditionResponse:
    data = edition.model_dump(exclude={"comments"})
    return EditionResponse(
        **data,
        change_note_html=state_machine.change_note_html(edition) if edition.change_note else None,
        comments=[CommentResponse(**c.model_dump()) for c in edition.comments],
    )


def guide_response(
    guide: Guide, editions: GuideEditions, state_machine: EditionStateMachine
) -> GuideResponse:
    latest = editions.latest_edition
    live = editions.live_edition
    return GuideResponse(
        **guide.model_dump(),
        latest_edition=edition_response(latest, state_machine) if latest else None,
        live_edition=edition_response(live, state_machine) if live else None,
        has_been_published=editions.has_been_published,
    )


def guide_detail_response(
    guide: Guide, editions: GuideEditions, state_machine: EditionStateMachine
) -> GuideDetailResponse:
    summary = guide_response(guide, editions, state_machine)
    return GuideDetailResponse(
        **summary.model_dump(),
        latest_edition_per_lineage=[
            edition_response(e, state_machine) for e in editions.latest_edition_per_lineage()
        ],
    )


def thread_event_response(event: ThreadEvent) -> ThreadEventResponse:
    if isinstance(event, NewDraftEvent):
        return ThreadEventResponse(
            type="new_draft",
            edition_id=event.edition.id,
            user_id=event.edition.author_id,
            created_at=event.edition.created_at,
        )
    if isinstance(event, AssignedToEvent):
        return ThreadEventResponse(
            type="assigned_to",
            edition_id=event.edition.id,
            user_id=event.edition.author_id,
            created_at=event.edition.created_at,
        )
    if isinstance(event, StateChangeEvent):
        return ThreadEventResponse(
            type="state_change",
            edition_id=event.edition.id,
            action=event.action,
            created_at=event.edition.created_at,
        )
    if isinstance(event, CommentEvent):
        return ThreadEventResponse(
            type="comment",
            edition_id=event.comment.edition_id,
            user_id=event.comment.user_id,
            comment=event.comment.comment,
            created_at=event.comment.created_at,
        )
    raise TypeError(f"Unknown thread event: {type(event)}")
