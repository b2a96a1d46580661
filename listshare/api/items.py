"""Vote, rating and comment API endpoints for list items."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from listshare.api.dependencies import (
    get_contributable_item,
    get_current_user,
    get_optional_user,
    get_readable_list,
    get_vote_service,
)
from listshare.database import get_db
from listshare.models.comment import ListItemComment
from listshare.models.item import ListItem
from listshare.models.user import User
from listshare.schemas.item import (
    CommentCreate,
    CommentResponse,
    RatingRequest,
    RatingResponse,
    VoteRequest,
    VoteResponse,
)
from listshare.services.realtime import ListEventType, publish_list_event
from listshare.services.voting import VoteService
from listshare.tasks.notifications import enqueue_change_event

router = APIRouter(prefix="/api/v1", tags=["items"])


def require_feature(item: ListItem, feature: str, message: str) -> None:
    """Reject the request when the list has a feature switched off."""
    settings = item.list.settings
    if settings is not None and not getattr(settings, feature):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.post("/items/{item_id}/vote", response_model=VoteResponse)
def vote_item(
    item_id: int,
    vote: VoteRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    vote_service: Annotated[VoteService, Depends(get_vote_service)],
):
    """Cast, flip or clear the current user's vote on an item."""
    item = get_contributable_item(db, item_id, current_user)
    require_feature(item, "enable_voting", "Voting is disabled for this list")
    if vote.vote_type == -1:
        require_feature(item, "enable_downvote", "Downvoting is disabled for this list")
    result = vote_service.cast_vote(item_id, current_user.id, vote.vote_type)
    return VoteResponse(
        item_id=result.item_id,
        vote_type=result.vote_type,
        delta=result.delta,
        upvotes=result.upvotes,
    )


@router.put("/items/{item_id}/rating", response_model=RatingResponse)
def rate_item(
    item_id: int,
    rating: RatingRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    vote_service: Annotated[VoteService, Depends(get_vote_service)],
):
    """Set the current user's 1-5 rating of an item."""
    item = get_contributable_item(db, item_id, current_user)
    require_feature(item, "enable_rating", "Rating is disabled for this list")
    return vote_service.rate_item(item_id, current_user.id, rating.rating)


@router.get("/items/{item_id}/comments", response_model=list[CommentResponse])
def get_comments(
    item_id: int,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Get an item's comments, oldest first."""
    item = db.query(ListItem).filter(ListItem.id == item_id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
    get_readable_list(db, item.list_id, current_user)

    return (
        db.query(ListItemComment)
        .filter(ListItemComment.list_item_id == item_id)
        .order_by(ListItemComment.created_at, ListItemComment.id)
        .all()
    )


@router.post(
    "/items/{item_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    item_id: int,
    comment_data: CommentCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Comment on an item."""
    item = get_contributable_item(db, item_id, current_user)
    require_feature(item, "enable_comments", "Comments are disabled for this list")

    comment = ListItemComment(
        list_item_id=item_id,
        user_id=current_user.id,
        comment=comment_data.comment,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    publish_list_event(
        item.list_id, ListEventType.COMMENT_ADDED, {"item_id": item_id, "comment_id": comment.id}
    )
    enqueue_change_event(
        "list_item_comments",
        {
            "id": comment.id,
            "list_item_id": item_id,
            "user_id": current_user.id,
            "comment": comment.comment,
        },
    )
    return comment


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a comment (author only)."""
    comment = db.query(ListItemComment).filter(ListItemComment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")

    if comment.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can delete this comment",
        )

    list_id = comment.item.list_id
    item_id = comment.list_item_id
    db.delete(comment)
    db.commit()
    publish_list_event(list_id, ListEventType.COMMENT_DELETED, {"item_id": item_id})
