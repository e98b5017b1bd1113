from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from service_manual.api.deps import (
    get_current_user,
    get_guide_service,
    get_state_machine,
    get_workflow,
)
from service_manual.api.responses import (
    edition_response,
    guide_detail_response,
    guide_response,
    raise_for_errors,
)
from service_manual.api.schemas import (
    EditionChangesRequest,
    EditionResponse,
    GuideCreateRequest,
    GuideDetailResponse,
    GuideResponse,
    GuideUpdateRequest,
)
from service_manual.components.editions import (
    ApproveInput,
    EditionOperationOutput,
    EditionStateMachine,
    EditionWorkflow,
    PublishInput,
    RequestReviewInput,
    SaveDraftInput,
    UnpublishInput,
)
from service_manual.components.guides import (
    CreateGuideInput,
    GuideService,
    ListGuidesInput,
    UpdateGuideInput,
)
from service_manual.domain.entities import User

router = APIRouter()


@router.get("", response_model=list[GuideResponse])
def list_guides(
    q: str | None = None,
    state: str | None = None,
    author_id: UUID | None = None,
    content_owner_id: UUID | None = None,
    type: str | None = None,
    live: bool = False,
    hide_unpublished: bool = False,
    current_user: User = Depends(get_current_user),
    service: GuideService = Depends(get_guide_service),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> list[GuideResponse]:
    """List guides, newest first, narrowed by the given filters."""
    entries = service.list(
        ListGuidesInput(
            query=q,
            state=state,
            author_id=author_id,
            content_owner_id=content_owner_id,
            kind=type,
            live_only=live,
            hide_unpublished=hide_unpublished,
        )
    )
    return [
        guide_response(e.guide, e.editions, state_machine)
        for e in sorted(entries, key=lambda e: e.guide.updated_at, reverse=True)
    ]


@router.post("", response_model=GuideResponse, status_code=status.HTTP_201_CREATED)
def create_guide(
    req: GuideCreateRequest,
    current_user: User = Depends(get_current_user),
    service: GuideService = Depends(get_guide_service),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> GuideResponse:
    """Create a guide with its first draft, authored by the current user."""
    result = service.create(CreateGuideInput(author_id=current_user.id, **req.model_dump()))
    if not result.success or result.guide is None:
        raise_for_errors(result.errors)

    return guide_response(result.guide, service.editions(result.guide), state_machine)


@router.get("/{guide_id}", response_model=GuideDetailResponse)
def get_guide(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    service: GuideService = Depends(get_guide_service),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> GuideDetailResponse:
    guide = service.get(guide_id)
    if guide is None:
        raise HTTPException(status_code=404, detail="Guide not found")

    return guide_detail_response(guide, service.editions(guide), state_machine)


@router.patch("/{guide_id}", response_model=GuideResponse)
def update_guide(
    guide_id: UUID,
    req: GuideUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: GuideService = Depends(get_guide_service),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> GuideResponse:
    """Change the slug or topic section of a guide."""
    result = service.update(UpdateGuideInput(guide_id=guide_id, **req.model_dump()))
    if not result.success or result.guide is None:
        raise_for_errors(result.errors)

    return guide_response(result.guide, service.editions(result.guide), state_machine)


@router.delete("/{guide_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_guide(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    service: GuideService = Depends(get_guide_service),
) -> None:
    if not service.destroy(guide_id):
        raise HTTPException(status_code=404, detail="Guide not found")


# --- Workflow actions ---


def _edition_or_raise(
    result: EditionOperationOutput, state_machine: EditionStateMachine
) -> EditionResponse:
    if not result.success or result.edition is None:
        raise_for_errors(result.errors)
    return edition_response(result.edition, state_machine)


@router.post("/{guide_id}/draft", response_model=EditionResponse)
def save_draft(
    guide_id: UUID,
    req: EditionChangesRequest,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    """Save changes as a new draft. Editing a published guide starts a new version."""
    changes = req.model_dump(exclude_unset=True)
    result = workflow.run(SaveDraftInput(user=current_user, guide_id=guide_id, changes=changes))
    return _edition_or_raise(result, state_machine)


@router.post("/{guide_id}/request-review", response_model=EditionResponse)
def request_review(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    result = workflow.run(RequestReviewInput(user=current_user, guide_id=guide_id))
    return _edition_or_raise(result, state_machine)


@router.post("/{guide_id}/approve", response_model=EditionResponse)
def approve(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    result = workflow.run(ApproveInput(user=current_user, guide_id=guide_id))
    return _edition_or_raise(result, state_machine)


@router.post("/{guide_id}/publish", response_model=EditionResponse)
def publish(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    result = workflow.run(PublishInput(user=current_user, guide_id=guide_id))
    return _edition_or_raise(result, state_machine)


@router.post("/{guide_id}/unpublish", response_model=EditionResponse)
def unpublish(
    guide_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: EditionWorkflow = Depends(get_workflow),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionResponse:
    result = workflow.run(UnpublishInput(user=current_user, guide_id=guide_id))
    return _edition_or_raise(result, state_machine)
