# backend/wealth/routers/tags.py
"""
Category tag and exclusion tag endpoints.

- /tags: one category per expense, drives the category buckets
- /exclusion-tags: any number per expense, removes it from bucketed views
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from wealth.database import get_db
from wealth.dependencies import get_expense_service
from wealth.schemas.expenses import TagCreate, TagResponse, TagUpdate
from wealth.services.expenses import ExpenseService

router = APIRouter(
    prefix="/tags",
    tags=["Tags"],
)

exclusion_router = APIRouter(
    prefix="/exclusion-tags",
    tags=["Tags"],
)


# =============================================================================
# CATEGORY TAGS
# =============================================================================

@router.get("/", response_model=list[TagResponse], summary="List category tags")
def list_tags(
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> list[TagResponse]:
    return [TagResponse.model_validate(t) for t in service.list_tags(db)]


@router.post("/", response_model=TagResponse, status_code=status.HTTP_201_CREATED, summary="Create a category tag")
def create_tag(
        data: TagCreate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> TagResponse:
    """Returns **400** if the name is taken."""
    return TagResponse.model_validate(service.create_tag(db, data))


@router.patch("/{tag_id}", response_model=TagResponse, summary="Rename or recolor a category tag")
def update_tag(
        tag_id: int,
        data: TagUpdate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> TagResponse:
    return TagResponse.model_validate(service.update_tag(db, tag_id, data))


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a category tag")
def delete_tag(
        tag_id: int,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> Response:
    """Expenses keep the id and show up under "Unknown" in category views."""
    service.delete_tag(db, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# EXCLUSION TAGS
# =============================================================================

@exclusion_router.get("/", response_model=list[TagResponse], summary="List exclusion tags")
def list_exclusion_tags(
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> list[TagResponse]:
    return [TagResponse.model_validate(t) for t in service.list_exclusion_tags(db)]


@exclusion_router.post(
    "/",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an exclusion tag",
)
def create_exclusion_tag(
        data: TagCreate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> TagResponse:
    return TagResponse.model_validate(service.create_exclusion_tag(db, data))


@exclusion_router.patch("/{tag_id}", response_model=TagResponse, summary="Rename or recolor an exclusion tag")
def update_exclusion_tag(
        tag_id: int,
        data: TagUpdate,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> TagResponse:
    return TagResponse.model_validate(service.update_exclusion_tag(db, tag_id, data))


@exclusion_router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an exclusion tag")
def delete_exclusion_tag(
        tag_id: int,
        db: Session = Depends(get_db),
        service: ExpenseService = Depends(get_expense_service),
) -> Response:
    service.delete_exclusion_tag(db, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
