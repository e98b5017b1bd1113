from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from service_manual.adapters.sqlite.repos import SQLiteEditionRepo
from service_manual.api.deps import (
    get_current_user,
    get_edition_repo,
    get_state_machine,
    get_workflow,
)
from service_manual.api.responses import edition_response, raise_for_errors, thread_event_response
from service_manual.api.schemas import (
    CommentCreateRequest,
    CommentResponse,
    EditionChangesRequest,
    EditionResponse,
    ThreadEventResponse,
)
from service_manual.components.editions import (
    AddCommentInput,
    AmendEditionInput,
    EditionStateMachine,
    EditionWorkflow,
)
from service_manual.components.thread import EditionThread
from service_manual.domain.entities import User

router = APIRouter()


@router.get("/{edition_id}", response_model=EditionResponse)
def get_edition(
    edition_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLiteEditionRepo = Depends(get_edition_repo),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    edition = repo.get_by_id(edition_id)
    if edition is None:
        raise HTTPException(status_code=404, detail="Edition not found")
    return edition_response(edition, state_machine)


@router.patch("/{edition_id}", response_model=EditionResponse)
def amend_edition(
    edition_id: UUID,
    req: EditionChangesRequest,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    """Change an edition in place. Published editions refuse content changes."""
    result = workflow.run(
        AmendEditionInput(
            user=current_user,
            edition_id=edition_id,
            changes=req.model_dump(exclude_unset=True),
        )
    )
    if not result.success or result.edition is None:
        raise_for_errors(result.errors)
    return edition_response(result.edition, state_machine)


@router.post(
    "/{edition_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    edition_id: UUID,
    req: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
) -> CommentResponse:
    result = workflow.add_comment(
        AddCommentInput(user=current_user, edition_id=edition_id, comment=req.comment)
    )
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    return CommentResponse(**result.comment.model_dump())


@router.get("/{edition_id}/thread", response_model=list[ThreadEventResponse])
def get_thread(
    edition_id: UUID,
    current_user: User = Depends(get_current_user),
    repo: SQLiteEditionRepo = Depends(get_edition_repo),
) -> list[ThreadEventResponse]:
    """History of the edition's version: drafting, state changes and comments."""
    edition = repo.get_by_id(edition_id)
    if edition is None:
        raise HTTPException(status_code=404, detail="Edition not found")

    return [thread_event_response(event) for event in EditionThread(edition, repo).events()]
