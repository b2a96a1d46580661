"""Vote and rating aggregation for list items."""

import logging
import random
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from listshare.database import upsert_insert
from listshare.exceptions import InvalidArgument, NotFound, Unauthenticated
from listshare.models.comment import ListItemComment
from listshare.models.enums import SortBy
from listshare.models.item import ListItem
from listshare.models.list import List
from listshare.models.vote import ListRating, ListVote
from listshare.services.realtime import ListEventType, publish_list_event

logger = logging.getLogger(__name__)

VOTE_DIRECTIONS = (1, -1)
RATING_RANGE = range(1, 6)


@dataclass
class VoteResult:
    """Outcome of a single vote operation."""

    item_id: int
    vote_type: int | None
    delta: int
    upvotes: int


def validate_direction(direction: Any) -> int | None:
    """Accept +1, -1 or None (clear)."""
    if direction is None:
        return None
    if isinstance(direction, bool) or direction not in VOTE_DIRECTIONS:
        raise InvalidArgument("Vote direction must be 1, -1 or null")
    return int(direction)


def validate_rating(rating: Any) -> int:
    """Accept an integer from 1 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in RATING_RANGE:
        raise InvalidArgument("Rating must be an integer from 1 to 5")
    return rating


class VoteService:
    """Maintains per-user votes and ratings, and each item's vote total."""

    def __init__(self, db: Session):
        self.db = db

    def _get_item(self, item_id: int) -> ListItem:
        item = self.db.query(ListItem).filter(ListItem.id == item_id).first()
        if item is None:
            raise NotFound("Item not found")
        return item

    def cast_vote(self, item_id: int, user_id: int | None, direction: int | None) -> VoteResult:
        """Cast, flip or clear a user's vote on an item.

        Repeating the current direction clears the vote; the opposite
        direction flips it. The item's ``upvotes`` moves by the matching delta
        through a single atomic UPDATE.
        """
        if user_id is None:
            raise Unauthenticated()
        direction = validate_direction(direction)
        item = self._get_item(item_id)

        try:
            vote_type, delta = self._apply_vote(item_id, user_id, direction)
        except IntegrityError:
            # Lost the race for this user's first vote; the winner's row exists now
            logger.info(f"Concurrent first vote on item {item_id} by user {user_id}, retrying")
            vote_type, delta = self._apply_vote(item_id, user_id, direction)

        self.db.commit()
        self.db.refresh(item)

        publish_list_event(
            item.list_id,
            ListEventType.ITEM_VOTED,
            {"item_id": item.id, "upvotes": item.upvotes},
        )
        return VoteResult(item_id=item.id, vote_type=vote_type, delta=delta, upvotes=item.upvotes)

    def _apply_vote(
        self, item_id: int, user_id: int, direction: int | None
    ) -> tuple[int | None, int]:
        existing = (
            self.db.query(ListVote)
            .filter(ListVote.list_item_id == item_id, ListVote.user_id == user_id)
            .with_for_update()
            .first()
        )

        if existing is None:
            if direction is None:
                return None, 0
            with self.db.begin_nested():
                self.db.add(ListVote(list_item_id=item_id, user_id=user_id, vote_type=direction))
                self.db.flush()
            delta = direction
            vote_type = direction
        elif direction is None or existing.vote_type == direction:
            delta = -existing.vote_type
            vote_type = None
            self.db.delete(existing)
            self.db.flush()
        else:
            delta = 2 * direction
            vote_type = direction
            existing.vote_type = direction
            self.db.flush()

        if delta:
            self.db.execute(
                update(ListItem)
                .where(ListItem.id == item_id)
                .values(upvotes=ListItem.upvotes + delta)
            )
        return vote_type, delta

    def rate_item(self, item_id: int, user_id: int | None, rating: int) -> ListRating:
        """Insert or overwrite a user's rating of an item."""
        if user_id is None:
            raise Unauthenticated()
        rating = validate_rating(rating)
        item = self._get_item(item_id)

        stmt = upsert_insert(self.db, ListRating.__table__).values(
            list_item_id=item_id, user_id=user_id, rating=rating
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["list_item_id", "user_id"],
            set_={"rating": stmt.excluded.rating, "updated_at": func.now()},
        )
        self.db.execute(stmt)
        self.db.commit()

        row = (
            self.db.query(ListRating)
            .filter(ListRating.list_item_id == item_id, ListRating.user_id == user_id)
            .one()
        )
        publish_list_event(item.list_id, ListEventType.ITEM_RATED, {"item_id": item.id})
        return row


def item_rating_summaries(db: Session, item_ids: list[int]) -> dict[int, tuple[float, int]]:
    """Average rating and rating count per item, computed from raw rows."""
    if not item_ids:
        return {}
    rows = (
        db.query(ListRating.list_item_id, func.avg(ListRating.rating), func.count(ListRating.id))
        .filter(ListRating.list_item_id.in_(item_ids))
        .group_by(ListRating.list_item_id)
        .all()
    )
    return {item_id: (float(avg), count) for item_id, avg, count in rows}


def list_items_for_user(
    db: Session, list_obj: List, user_id: int | None, sort_by: SortBy | None = None
) -> list[dict]:
    """Read a list's items with the caller's vote/rating and aggregates attached."""
    sort_by = sort_by or SortBy(list_obj.settings.sort_by if list_obj.settings else "manual")
    items = db.query(ListItem).filter(ListItem.list_id == list_obj.id).all()
    item_ids = [item.id for item in items]

    my_votes: dict[int, int] = {}
    my_ratings: dict[int, int] = {}
    if user_id is not None and item_ids:
        my_votes = dict(
            db.query(ListVote.list_item_id, ListVote.vote_type)
            .filter(ListVote.list_item_id.in_(item_ids), ListVote.user_id == user_id)
            .all()
        )
        my_ratings = dict(
            db.query(ListRating.list_item_id, ListRating.rating)
            .filter(ListRating.list_item_id.in_(item_ids), ListRating.user_id == user_id)
            .all()
        )

    comment_counts: dict[int, int] = {}
    if item_ids:
        comment_counts = dict(
            db.query(ListItemComment.list_item_id, func.count(ListItemComment.id))
            .filter(ListItemComment.list_item_id.in_(item_ids))
            .group_by(ListItemComment.list_item_id)
            .all()
        )
    summaries = item_rating_summaries(db, item_ids)

    if sort_by == SortBy.VOTES:
        items.sort(key=lambda i: (-i.upvotes, i.position))
    elif sort_by == SortBy.RATINGS:
        # Unrated items sink to the bottom
        items.sort(key=lambda i: (-summaries.get(i.id, (0.0, 0))[0], i.position))
    elif sort_by == SortBy.SHUFFLE:
        random.shuffle(items)
    else:
        items.sort(key=lambda i: i.position)

    result = []
    for item in items:
        average, count = summaries.get(item.id, (None, 0))
        result.append(
            {
                "item": item,
                "my_vote": my_votes.get(item.id),
                "my_rating": my_ratings.get(item.id),
                "average_rating": average,
                "rating_count": count,
                "comment_count": comment_counts.get(item.id, 0),
            }
        )
    return result
