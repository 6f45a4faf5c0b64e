"""Read side: recipe feed, search, profile and detail views.

Every view is assembled from the normalized tables on each request. The
derived fields (cover image, like and comment counts, and the viewer's own
reaction) are correlated subqueries, so counts always match the reaction rows
they are computed from. None of these functions requires authentication.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta

from sqlalchemy import func, null, or_, select

from errors import NotFound
from models import db, utcnow, Category, Comment, CommentReaction, Recipe, RecipeImage, RecipeReaction, User
from models.Recipe import DIFFICULTIES
from services.unit_of_work import reads_storage
from services.users import get_user_by_username, serialize_user

logger = logging.getLogger(__name__)

RECENCY_WINDOWS = {
    'week': timedelta(days=7),
    'month': timedelta(days=30),
    'year': timedelta(days=365),
}

LIKE = 'like'


def parse_category_ids(values):
    """Collect integer category ids, silently skipping anything non-numeric.

    Accepts ints, comma separated strings ("1,2,3") and nested lists of
    either.
    """
    ids = set()
    for value in values:
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            ids.add(value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            ids.update(parse_category_ids(value))
        elif isinstance(value, str):
            for part in value.split(','):
                part = part.strip()
                if part.isdigit():
                    ids.add(int(part))
    return ids


@dataclass(frozen=True)
class RecipeFilters:
    q: str = ''
    time: str = 'none'
    difficulty: str = 'any'
    category_ids: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_args(cls, args):
        """Build filters from query-string style args, ignoring bad values."""
        q = str(args.get('q') or '').strip()

        time = args.get('time') or 'none'
        if time not in RECENCY_WINDOWS:
            time = 'none'

        difficulty = args.get('difficulty') or 'any'
        if difficulty not in DIFFICULTIES:
            difficulty = 'any'

        raw_ids = []
        for key in ('categoryIds', 'categories'):
            if hasattr(args, 'getlist'):
                raw_ids.extend(args.getlist(key))
            elif args.get(key) is not None:
                raw_ids.append(args[key])

        return cls(q=q, time=time, difficulty=difficulty, category_ids=frozenset(parse_category_ids(raw_ids)))

    @property
    def is_empty(self):
        return not self.q and self.time == 'none' and self.difficulty == 'any' and not self.category_ids


def _escape_like(text):
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _like_count(reaction_model, target_column, target_id_column):
    return (
        select(func.count(reaction_model.id))
        .where(target_column == target_id_column, reaction_model.reaction_type == LIKE)
        .scalar_subquery()
    )


def _my_reaction(reaction_model, target_column, target_id_column, viewer):
    if not viewer.is_authenticated:
        return null()
    return (
        select(reaction_model.reaction_type)
        .where(target_column == target_id_column, reaction_model.user_id == viewer.subject_id)
        .limit(1)
        .scalar_subquery()
    )


def _recipe_summary_query(viewer):
    cover_image = (
        select(RecipeImage.image_url)
        .where(RecipeImage.recipe_id == Recipe.id)
        .order_by(RecipeImage.display_order.asc(), RecipeImage.id.asc())
        .limit(1)
        .correlate(Recipe)
        .scalar_subquery()
    )
    comments_count = (
        select(func.count(Comment.id))
        .where(Comment.recipe_id == Recipe.id)
        .correlate(Recipe)
        .scalar_subquery()
    )

    return (
        db.session.query(
            Recipe,
            User.username,
            User.avatar_url,
            cover_image.label('cover_image'),
            _like_count(RecipeReaction, RecipeReaction.recipe_id, Recipe.id).label('likes_count'),
            comments_count.label('comments_count'),
            _my_reaction(RecipeReaction, RecipeReaction.recipe_id, Recipe.id, viewer).label('my_reaction'),
        )
        .join(User, Recipe.user_id == User.id)
    )


def _text_match(q):
    """Case-insensitive substring match on recipe title or author username."""
    if db.session.get_bind().dialect.name == 'sqlite':
        # casefold() is registered on every SQLite connection (models/__init__.py)
        pattern = f"%{_escape_like(q.casefold())}%"
        return or_(
            func.casefold(Recipe.title).like(pattern, escape='\\'),
            func.casefold(User.username).like(pattern, escape='\\'),
        )
    pattern = f"%{_escape_like(q)}%"
    return or_(
        Recipe.title.ilike(pattern, escape='\\'),
        User.username.ilike(pattern, escape='\\'),
    )


def _apply_filters(query, filters):
    if filters.q:
        query = query.filter(_text_match(filters.q))

    if filters.time in RECENCY_WINDOWS:
        query = query.filter(Recipe.created_at >= utcnow() - RECENCY_WINDOWS[filters.time])

    if filters.difficulty in DIFFICULTIES:
        query = query.filter(Recipe.difficulty == filters.difficulty)

    # Any of the selected categories qualifies
    if filters.category_ids:
        query = query.filter(Recipe.categories.any(Category.id.in_(sorted(filters.category_ids))))

    return query


def _summary_from_row(row):
    recipe, username, author_avatar, cover_image, likes_count, comments_count, my_reaction = row
    return {
        "id": recipe.id,
        "title": recipe.title,
        "description": recipe.description,
        "prep_time_minutes": recipe.prep_time_minutes,
        "difficulty": recipe.difficulty,
        "created_at": recipe.created_at.isoformat(),
        "is_edited": bool(recipe.is_edited),
        "user_id": recipe.user_id,
        "username": username,
        "author_avatar": author_avatar,
        "cover_image": cover_image,
        "likes_count": int(likes_count or 0),
        "comments_count": int(comments_count or 0),
        "my_reaction": my_reaction,
    }


@reads_storage
def list_recipes(viewer, filters=None, author_id=None):
    """Recipe summaries, newest first.

    With no filters this is the plain feed. ``author_id`` restricts the list to
    one user's recipes (profile pages).
    """
    query = _recipe_summary_query(viewer)
    if filters is not None and not filters.is_empty:
        query = _apply_filters(query, filters)
    if author_id is not None:
        query = query.filter(Recipe.user_id == author_id)

    rows = query.order_by(Recipe.created_at.desc(), Recipe.id.desc()).all()
    return [_summary_from_row(row) for row in rows]


@reads_storage
def list_comments(recipe_id, viewer):
    rows = (
        db.session.query(
            Comment,
            User.username,
            User.avatar_url,
            _like_count(CommentReaction, CommentReaction.comment_id, Comment.id).label('likes_count'),
            _my_reaction(CommentReaction, CommentReaction.comment_id, Comment.id, viewer).label('my_reaction'),
        )
        .join(User, Comment.user_id == User.id)
        .filter(Comment.recipe_id == recipe_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )

    comments = []
    for comment, username, avatar_url, likes_count, my_reaction in rows:
        comments.append({
            "id": comment.id,
            "recipe_id": comment.recipe_id,
            "user_id": comment.user_id,
            "username": username,
            "avatar_url": avatar_url,
            "content": comment.content,
            "created_at": comment.created_at.isoformat(),
            "likes_count": int(likes_count or 0),
            "my_reaction": my_reaction,
        })
    return comments


@reads_storage
def get_recipe_detail(recipe_id, viewer):
    row = _recipe_summary_query(viewer).filter(Recipe.id == recipe_id).first()
    if row is None:
        raise NotFound("Recipe not found")

    recipe = row[0]
    categories = sorted(recipe.categories, key=lambda c: c.name)

    detail = _summary_from_row(row)
    detail.update({
        "ingredients": [ingredient.item for ingredient in recipe.ingredients],
        "categories": [category.name for category in categories],
        "category_ids": [category.id for category in categories],
        "images": [image.image_url for image in recipe.images],
        "comments": list_comments(recipe.id, viewer),
    })
    return detail


@reads_storage
def get_public_profile(username, viewer):
    user = get_user_by_username(username)
    return {
        "profile": serialize_user(user),
        "recipes": list_recipes(viewer, author_id=user.id),
    }


@reads_storage
def list_categories():
    return [{"id": c.id, "name": c.name} for c in Category.query.order_by(Category.name.asc()).all()]
