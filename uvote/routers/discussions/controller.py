# uvote/routers/discussions/controller.py
from datetime import datetime
from typing import Dict, List, Optional
from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from uvote.database import commit_changes
from uvote.routers.elections.controller import get_election_or_404
from uvote.routers.elections.utilities import unique_names
from uvote.utils.timeutils import as_naive_utc, utcnow


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# -------------------------
# Topics
# -------------------------
def topic_to_data(topic: models.DiscussionTopic, comment_count: int = 0) -> schemas.TopicData:
    return schemas.TopicData(
        id=topic.id,
        election_id=topic.election_id,
        title=topic.title,
        content=topic.content,
        created_by=topic.created_by,
        is_pinned=bool(topic.is_pinned),
        is_locked=bool(topic.is_locked),
        view_count=topic.view_count or 0,
        comment_count=comment_count,
        created_at=topic.created_at,
        updated_at=topic.updated_at,
    )


def get_topic_or_404(db: Session, topic_id: int) -> models.DiscussionTopic:
    topic = db.query(models.DiscussionTopic).filter(models.DiscussionTopic.id == topic_id).first()
    if not topic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Topic not found.")
    return topic


def list_topics(db: Session, election_id: int) -> List[schemas.TopicData]:
    """Pinned topics first, newest first within each group."""
    get_election_or_404(db, election_id)
    counts = dict(
        db.query(models.DiscussionComment.topic_id, func.count(models.DiscussionComment.id))
        .join(models.DiscussionTopic, models.DiscussionTopic.id == models.DiscussionComment.topic_id)
        .filter(models.DiscussionTopic.election_id == election_id)
        .group_by(models.DiscussionComment.topic_id)
        .all()
    )
    topics = (
        db.query(models.DiscussionTopic)
        .filter(models.DiscussionTopic.election_id == election_id)
        .order_by(models.DiscussionTopic.is_pinned.desc(), models.DiscussionTopic.id.desc())
        .all()
    )
    return [topic_to_data(t, counts.get(t.id, 0)) for t in topics]


def create_topic(db: Session, payload: schemas.TopicCreate, user_id: str) -> models.DiscussionTopic:
    get_election_or_404(db, payload.election_id)
    topic = models.DiscussionTopic(
        election_id=payload.election_id,
        title=payload.title.strip(),
        content=payload.content,
        created_by=user_id,
        is_pinned=False,
        is_locked=False,
        view_count=0,
    )
    db.add(topic)
    commit_changes(db, "create the topic")
    db.refresh(topic)
    logger.info(f"Topic {topic.id} opened in election {topic.election_id} by {user_id}")
    return topic


def view_topic(db: Session, topic_id: int) -> schemas.TopicDetail:
    topic = get_topic_or_404(db, topic_id)
    topic.view_count = (topic.view_count or 0) + 1
    commit_changes(db, "open the topic")
    db.refresh(topic)
    comments = [schemas.CommentData.model_validate(c) for c in topic.comments]
    return schemas.TopicDetail(**topic_to_data(topic, len(comments)).model_dump(), comments=comments)


def update_topic(db: Session, topic_id: int, payload: schemas.TopicUpdate, user_id: str,
                 user_is_admin: bool) -> models.DiscussionTopic:
    topic = get_topic_or_404(db, topic_id)
    changes = payload.model_dump(exclude_unset=True)

    moderation = {k: v for k, v in changes.items() if k in ("is_pinned", "is_locked") and v is not None}
    edits = {k: v for k, v in changes.items() if k in ("title", "content")}
    if moderation and not user_is_admin:
        raise _forbidden("Only administrators can pin or lock topics.")
    if edits and topic.created_by != user_id and not user_is_admin:
        raise _forbidden("You can only edit your own topics.")

    if edits.get("title"):
        topic.title = edits["title"].strip()
    if "content" in edits:
        topic.content = edits["content"]
    for field, value in moderation.items():
        setattr(topic, field, value)

    commit_changes(db, "update the topic")
    db.refresh(topic)
    logger.info(f"Topic {topic_id} updated by {user_id}: {sorted(changes)}")
    return topic


def delete_topic(db: Session, topic_id: int, user_id: str, user_is_admin: bool) -> None:
    topic = get_topic_or_404(db, topic_id)
    if topic.created_by != user_id and not user_is_admin:
        raise _forbidden("You can only delete your own topics.")
    db.query(models.Poll).filter(models.Poll.topic_id == topic_id).update(
        {models.Poll.topic_id: None}, synchronize_session=False
    )
    db.query(models.DiscussionComment).filter(models.DiscussionComment.topic_id == topic_id).delete(
        synchronize_session=False
    )
    db.expire(topic)
    db.delete(topic)
    commit_changes(db, "delete the topic")
    logger.info(f"Topic {topic_id} deleted by {user_id}")


# -------------------------
# Comments
# -------------------------
def add_comment(db: Session, topic_id: int, payload: schemas.CommentCreate,
                user_id: str) -> models.DiscussionComment:
    topic = get_topic_or_404(db, topic_id)
    if topic.is_locked:
        raise _forbidden("This topic is locked.")
    if payload.parent_id is not None:
        parent = db.query(models.DiscussionComment).filter(
            models.DiscussionComment.id == payload.parent_id,
            models.DiscussionComment.topic_id == topic_id,
        ).first()
        if not parent:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="The comment you are replying to is not in this topic.")
    comment = models.DiscussionComment(
        topic_id=topic_id, user_id=user_id, content=payload.content.strip(), parent_id=payload.parent_id
    )
    db.add(comment)
    commit_changes(db, "post the comment")
    db.refresh(comment)
    return comment


def get_comment_or_404(db: Session, comment_id: int) -> models.DiscussionComment:
    comment = db.query(models.DiscussionComment).filter(models.DiscussionComment.id == comment_id).first()
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found.")
    return comment


def delete_comment(db: Session, comment_id: int, user_id: str, user_is_admin: bool) -> int:
    """Delete a comment and its replies. Returns how many comments went."""
    comment = get_comment_or_404(db, comment_id)
    if comment.user_id != user_id and not user_is_admin:
        raise _forbidden("You can only delete your own comments.")

    siblings = db.query(models.DiscussionComment.id, models.DiscussionComment.parent_id).filter(
        models.DiscussionComment.topic_id == comment.topic_id
    ).all()
    doomed = {comment_id}
    grew = True
    while grew:
        grew = False
        for row in siblings:
            if row.parent_id in doomed and row.id not in doomed:
                doomed.add(row.id)
                grew = True

    db.query(models.DiscussionComment).filter(models.DiscussionComment.id.in_(doomed)).delete(
        synchronize_session=False
    )
    commit_changes(db, "delete the comment")
    logger.info(f"Comment {comment_id} deleted by {user_id} ({len(doomed)} comment(s) removed)")
    return len(doomed)


# -------------------------
# Polls
# -------------------------
def get_poll_or_404(db: Session, poll_id: int) -> models.Poll:
    poll = db.query(models.Poll).filter(models.Poll.id == poll_id).first()
    if not poll:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Poll not found.")
    return poll


def poll_is_open(poll: models.Poll, now: Optional[datetime] = None) -> bool:
    if poll.is_closed:
        return False
    return poll.ends_at is None or (now or utcnow()) <= poll.ends_at


def poll_to_data(poll: models.Poll, viewer_id: Optional[str] = None) -> schemas.PollData:
    mine = next((v.options for v in poll.votes if v.user_id == viewer_id), [])
    return schemas.PollData(
        id=poll.id,
        election_id=poll.election_id,
        topic_id=poll.topic_id,
        question=poll.question,
        description=poll.description,
        options=[schemas.PollOption(id=k, text=v) for k, v in (poll.options or {}).items()],
        multiple_choice=bool(poll.multiple_choice),
        is_closed=not poll_is_open(poll),
        ends_at=poll.ends_at,
        created_by=poll.created_by,
        created_at=poll.created_at,
        total_voters=len(poll.votes),
        my_vote=list(mine or []),
    )


def list_polls(db: Session, election_id: int) -> List[models.Poll]:
    get_election_or_404(db, election_id)
    return db.query(models.Poll).filter(models.Poll.election_id == election_id).order_by(models.Poll.id.desc()).all()


def create_poll(db: Session, payload: schemas.PollCreate, user_id: str) -> models.Poll:
    get_election_or_404(db, payload.election_id)
    if payload.topic_id is not None:
        topic = get_topic_or_404(db, payload.topic_id)
        if topic.election_id != payload.election_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail="The topic belongs to another election.")
    texts = unique_names(payload.options)
    if len(texts) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="A poll needs at least two distinct options.")

    options: Dict[str, str] = {str(i): text for i, text in enumerate(texts, start=1)}
    poll = models.Poll(
        election_id=payload.election_id,
        topic_id=payload.topic_id,
        question=payload.question.strip(),
        description=payload.description,
        options=options,
        multiple_choice=payload.multiple_choice,
        is_closed=False,
        ends_at=as_naive_utc(payload.ends_at) if payload.ends_at else None,
        created_by=user_id,
    )
    db.add(poll)
    commit_changes(db, "create the poll")
    db.refresh(poll)
    logger.info(f"Poll {poll.id} created in election {poll.election_id} by {user_id}")
    return poll


def vote_poll(db: Session, poll_id: int, option_ids: List[str], user_id: str,
              now: Optional[datetime] = None) -> models.PollVote:
    poll = get_poll_or_404(db, poll_id)
    if not poll_is_open(poll, now):
        raise _forbidden("This poll is closed.")

    chosen = unique_names(option_ids)
    unknown = [o for o in chosen if o not in (poll.options or {})]
    if unknown or not chosen:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"Unknown poll option(s): {', '.join(unknown) or 'none given'}")
    if not poll.multiple_choice and len(chosen) != 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="This poll takes exactly one option.")

    vote = db.query(models.PollVote).filter(
        models.PollVote.poll_id == poll_id, models.PollVote.user_id == user_id
    ).first()
    if vote:
        vote.options = chosen
    else:
        vote = models.PollVote(poll_id=poll_id, user_id=user_id, options=chosen)
        db.add(vote)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Concurrent poll vote on poll {poll_id} by {user_id}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Your vote was already recorded. Please try again.")
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Database commit failed: could not record poll vote on poll {poll_id}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Could not record your poll vote. Please try again.")
    db.refresh(vote)
    return vote


def poll_results(db: Session, poll_id: int) -> schemas.PollResults:
    poll = get_poll_or_404(db, poll_id)
    voters = len(poll.votes)
    counts = {option_id: 0 for option_id in (poll.options or {})}
    for vote in poll.votes:
        for option_id in vote.options or []:
            if option_id in counts:
                counts[option_id] += 1
    return schemas.PollResults(
        poll_id=poll.id,
        question=poll.question,
        is_closed=not poll_is_open(poll),
        total_voters=voters,
        options=[
            schemas.PollOptionResult(
                id=option_id,
                text=poll.options[option_id],
                votes=n,
                percentage=(n / voters * 100) if voters else 0.0,
            )
            for option_id, n in counts.items()
        ],
    )


def _ensure_poll_owner(poll: models.Poll, user_id: str, user_is_admin: bool) -> None:
    if poll.created_by != user_id and not user_is_admin:
        raise _forbidden("Only the poll's creator or an administrator can do this.")


def close_poll(db: Session, poll_id: int, user_id: str, user_is_admin: bool) -> models.Poll:
    poll = get_poll_or_404(db, poll_id)
    _ensure_poll_owner(poll, user_id, user_is_admin)
    poll.is_closed = True
    commit_changes(db, "close the poll")
    db.refresh(poll)
    logger.info(f"Poll {poll_id} closed by {user_id}")
    return poll


def delete_poll(db: Session, poll_id: int, user_id: str, user_is_admin: bool) -> None:
    poll = get_poll_or_404(db, poll_id)
    _ensure_poll_owner(poll, user_id, user_is_admin)
    db.delete(poll)
    commit_changes(db, "delete the poll")
    logger.info(f"Poll {poll_id} deleted by {user_id}")
