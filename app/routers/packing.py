import logging
from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_controller
from app.models.packing import (
    ErrorResponse,
    ShareResponse,
    UpdateActivityRequest,
    UpdateTripRequest,
    ViewState,
)
from app.services.packing_controller import PackingListController
from app.services.share_service import ShareOutbox

logger = logging.getLogger(__name__)
router = APIRouter(tags=["packing"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Unknown or expired session"}}


# ---------------------------
# Trip form
# ---------------------------
@router.put("/session/{session_id}/trip", response_model=ViewState, responses=NOT_FOUND)
def update_trip(body: UpdateTripRequest, controller: PackingListController = Depends(get_controller)):
    fields = {name: getattr(body, name) for name in body.model_fields_set}
    controller.update_trip(**fields)
    return controller.view_state()


@router.post("/session/{session_id}/activities", response_model=ViewState, responses=NOT_FOUND)
def add_activity(controller: PackingListController = Depends(get_controller)):
    controller.add_activity()
    return controller.view_state()


@router.patch("/session/{session_id}/activities/{index}", response_model=ViewState, responses=NOT_FOUND)
def update_activity(
    index: int,
    body: UpdateActivityRequest,
    controller: PackingListController = Depends(get_controller),
):
    try:
        controller.update_activity(index, description=body.description, time=body.time)
    except IndexError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"status": "error", "message": str(e)},
        )
    return controller.view_state()


@router.delete("/session/{session_id}/activities/{index}", response_model=ViewState, responses=NOT_FOUND)
def remove_activity(index: int, controller: PackingListController = Depends(get_controller)):
    controller.remove_activity(index)
    return controller.view_state()


# ---------------------------
# Packing list
# ---------------------------
@router.post("/session/{session_id}/generate", response_model=ViewState, responses={
    **NOT_FOUND,
    409: {"model": ErrorResponse, "description": "A generation is already running"},
})
async def generate_packing_list(controller: PackingListController = Depends(get_controller)):
    """
    Generate a packing list from the current form.

    Validation and generation failures come back in the `error` field of the state.
    """
    if controller.is_loading:
        logger.warning("Rejected generate request while a generation is running")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"status": "error", "message": "A packing list is already being generated"},
        )
    await controller.generate_packing_list()
    return controller.view_state()


@router.post("/session/{session_id}/save", response_model=ViewState, responses=NOT_FOUND)
def save_list(controller: PackingListController = Depends(get_controller)):
    controller.save_list()
    return controller.view_state()


@router.delete("/session/{session_id}/saved", response_model=ViewState, responses=NOT_FOUND)
def clear_saved_list(controller: PackingListController = Depends(get_controller)):
    controller.clear_saved_list()
    return controller.view_state()


@router.post("/session/{session_id}/share", response_model=ShareResponse, responses=NOT_FOUND)
async def share_list(native: bool = False, controller: PackingListController = Depends(get_controller)):
    """
    Render the list for sharing. With `native=true` the browser is expected to
    pass title and text to navigator.share; otherwise it copies the text.
    """
    outbox = ShareOutbox()
    if native:
        await controller.share_list(share_target=outbox)
    else:
        await controller.share_list(clipboard=outbox)

    return ShareResponse(
        method="share" if native else "clipboard",
        title=outbox.title,
        text=outbox.text,
        state=controller.view_state(),
    )
