"""Like/dislike toggling for recipes and comments.

A (subject, target) pair is in one of three states: no reaction, liked or
disliked. ``next_reaction`` is the whole state machine; the toggle functions
apply it to the storage row inside one transaction and recount likes before
committing, so the returned count reflects the new state.
"""
import enum
import logging
from collections import namedtuple

from sqlalchemy import func

from errors import NotFound, ValidationError
from models import Comment, CommentReaction, Recipe, RecipeReaction
from services.identity import require_subject
from services.unit_of_work import unit_of_work
from services.users import load_active_user

logger = logging.getLogger(__name__)


class ReactionType(str, enum.Enum):
    LIKE = 'like'
    DISLIKE = 'dislike'

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise ValidationError("Reaction type must be 'like' or 'dislike'", field='type') from None


class ReactionAction(str, enum.Enum):
    ADDED = 'added'
    REMOVED = 'removed'
    UPDATED = 'updated'


def next_reaction(current, requested):
    """Return ``(new_state, action)`` for a toggle request.

    no reaction + T  -> T     (added)
    T + T            -> none  (removed)
    T + T'           -> T'    (updated in place)
    """
    if current is None:
        return requested, ReactionAction.ADDED
    if current == requested:
        return None, ReactionAction.REMOVED
    return requested, ReactionAction.UPDATED


class ToggleResult(namedtuple('ToggleResult', ['action', 'my_reaction', 'new_like_count'])):
    __slots__ = ()

    def to_dict(self):
        return {
            "newLikeCount": self.new_like_count,
            "action": self.action.value,
            "myReaction": self.my_reaction.value if self.my_reaction else None,
        }


# Target model, reaction model and the reaction column pointing at the target
ReactionRelation = namedtuple('ReactionRelation', ['name', 'target_model', 'reaction_model', 'target_column'])

RECIPE_REACTIONS = ReactionRelation('Recipe', Recipe, RecipeReaction, 'recipe_id')
COMMENT_REACTIONS = ReactionRelation('Comment', Comment, CommentReaction, 'comment_id')


def _toggle(relation, subject, target_id, requested):
    subject = require_subject(subject)
    requested = ReactionType.parse(requested)
    load_active_user(subject)

    reaction_model = relation.reaction_model
    target_column = getattr(reaction_model, relation.target_column)

    with unit_of_work(f"{relation.name.lower()} reaction toggle",
                      conflict_message="Your reaction changed concurrently, please retry") as session:
        if session.get(relation.target_model, target_id) is None:
            raise NotFound(f"{relation.name} not found")

        existing = (
            session.query(reaction_model)
            .filter(reaction_model.user_id == subject.subject_id, target_column == target_id)
            .with_for_update()
            .first()
        )
        current = ReactionType(existing.reaction_type) if existing else None
        new_state, action = next_reaction(current, requested)

        if action is ReactionAction.ADDED:
            session.add(reaction_model(
                user_id=subject.subject_id,
                reaction_type=new_state.value,
                **{relation.target_column: target_id}
            ))
        elif action is ReactionAction.REMOVED:
            session.delete(existing)
        else:
            existing.reaction_type = new_state.value
        session.flush()

        new_like_count = (
            session.query(func.count(reaction_model.id))
            .filter(target_column == target_id, reaction_model.reaction_type == ReactionType.LIKE.value)
            .scalar()
        )

    logger.info("User %s %s %s reaction on %s %s (likes=%s)",
                subject.subject_id, action.value, requested.value, relation.name.lower(), target_id, new_like_count)
    return ToggleResult(action, new_state, int(new_like_count))


def toggle_recipe_reaction(subject, recipe_id, reaction_type):
    return _toggle(RECIPE_REACTIONS, subject, recipe_id, reaction_type)


def toggle_comment_reaction(subject, comment_id, reaction_type):
    return _toggle(COMMENT_REACTIONS, subject, comment_id, reaction_type)
