import logging

from errors import AuthorizationDenied, NotFound, ValidationError
from models import db, Comment, Recipe
from services.unit_of_work import unit_of_work
from services.users import load_active_user

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 2000


def _clean_content(content):
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Comment cannot be empty", field='content')
    content = content.strip()
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationError(f"Comment cannot be longer than {MAX_COMMENT_LENGTH} characters", field='content')
    return content


def _get_comment(comment_id):
    comment = db.session.get(Comment, comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    return comment


def serialize_comment(comment):
    return {
        "id": comment.id,
        "recipe_id": comment.recipe_id,
        "user_id": comment.user_id,
        "username": comment.author.username,
        "avatar_url": comment.author.avatar_url,
        "content": comment.content,
        "created_at": comment.created_at.isoformat(),
        "likes_count": 0,
        "my_reaction": None,
    }


def create_comment(subject, recipe_id, content):
    """Anyone signed in may comment on any recipe."""
    content = _clean_content(content)
    author = load_active_user(subject)
    if db.session.get(Recipe, recipe_id) is None:
        raise NotFound("Recipe not found")

    with unit_of_work("comment create") as session:
        comment = Comment(recipe_id=recipe_id, user_id=author.id, content=content)
        session.add(comment)

    logger.info("User %s commented on recipe %s (comment %s)", author.id, recipe_id, comment.id)
    return serialize_comment(comment)


def edit_comment(subject, comment_id, content):
    """Only the author may edit a comment, admins included."""
    load_active_user(subject)
    comment = _get_comment(comment_id)
    if not comment.is_authored_by(subject.subject_id):
        raise AuthorizationDenied("Only the author can edit this comment")
    content = _clean_content(content)

    with unit_of_work("comment edit"):
        comment.content = content

    logger.info("User %s edited comment %s", subject.subject_id, comment_id)
    return comment


def delete_comment(subject, comment_id):
    load_active_user(subject)
    comment = _get_comment(comment_id)
    if not subject.is_admin and not comment.is_authored_by(subject.subject_id):
        raise AuthorizationDenied("You are not allowed to delete this comment")

    with unit_of_work("comment delete") as session:
        session.delete(comment)

    logger.info("User %s deleted comment %s", subject.subject_id, comment_id)
