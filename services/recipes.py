"""Recipe create/update/delete.

A recipe and its dependent rows (ingredients, category links, images) are
written in one transaction: either everything is committed or nothing is.
Input is validated, and ownership checked, before any statement runs.
"""
import json
import logging
from dataclasses import dataclass

from errors import AuthorizationDenied, NotFound, ValidationError
from models import db, Category, Recipe, RecipeImage, RecipeIngredient
from models.Recipe import DIFFICULTIES
from services.unit_of_work import unit_of_work
from services.users import load_active_user

logger = logging.getLogger(__name__)

MAX_RECIPE_IMAGES = 5
MAX_TITLE_LENGTH = 150
MAX_INGREDIENT_LENGTH = 255


def _first_present(payload, *keys):
    for key in keys:
        if key in payload:
            return True, payload[key]
    return False, None


def _decode_list(value, field):
    """Lists arrive as JSON arrays, or as JSON-encoded strings from multipart forms."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            value = json.loads(text)
        except ValueError:
            # Plain text from a form field: one entry per line
            return text.splitlines()
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list", field=field)
    return value


def _parse_ingredients(value):
    items = []
    for raw in _decode_list(value, 'ingredients'):
        if not isinstance(raw, str):
            raise ValidationError("Each ingredient must be text", field='ingredients')
        item = raw.strip()
        if len(item) > MAX_INGREDIENT_LENGTH:
            raise ValidationError(f"Each ingredient can be at most {MAX_INGREDIENT_LENGTH} characters",
                                  field='ingredients')
        if item:
            items.append(item)
    if not items:
        raise ValidationError("A recipe needs at least one ingredient", field='ingredients')
    return items


def _parse_category_ids(value):
    if isinstance(value, str) and value.strip() and not value.strip().startswith('['):
        value = value.split(',')

    ids = []
    for raw in _decode_list(value, 'categoryIds'):
        if isinstance(raw, bool):
            raise ValidationError("Category ids must be integers", field='categoryIds')
        try:
            category_id = int(str(raw).strip())
        except ValueError:
            raise ValidationError("Category ids must be integers", field='categoryIds') from None
        if category_id not in ids:
            ids.append(category_id)
    return ids


def _parse_prep_time(value):
    if isinstance(value, bool):
        raise ValidationError("Preparation time must be a whole number of minutes", field='prepTimeMinutes')
    try:
        minutes = int(str(value).strip())
    except ValueError:
        raise ValidationError("Preparation time must be a whole number of minutes", field='prepTimeMinutes') from None
    if minutes < 0:
        raise ValidationError("Preparation time cannot be negative", field='prepTimeMinutes')
    return minutes


@dataclass
class RecipeInput:
    """Validated recipe fields. ``category_ids`` is None when not submitted."""
    title: str
    description: str
    prep_time_minutes: int
    difficulty: str
    ingredients: list
    category_ids: list = None

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError("Expected a JSON object")

        title = str(payload.get('title') or '').strip()
        if not title:
            raise ValidationError("Missing field: title", field='title')
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title can be at most {MAX_TITLE_LENGTH} characters", field='title')

        description = str(payload.get('description') or '').strip()

        present, prep_time = _first_present(payload, 'prepTimeMinutes', 'prep_time_minutes')
        if not present or prep_time is None or prep_time == '':
            raise ValidationError("Missing field: prepTimeMinutes", field='prepTimeMinutes')

        difficulty = payload.get('difficulty')
        if difficulty not in DIFFICULTIES:
            raise ValidationError(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}", field='difficulty')

        if payload.get('ingredients') is None:
            raise ValidationError("Missing field: ingredients", field='ingredients')

        present, raw_categories = _first_present(payload, 'categoryIds', 'categories')
        category_ids = None
        if present and raw_categories is not None:
            category_ids = _parse_category_ids(raw_categories)

        return cls(
            title=title,
            description=description,
            prep_time_minutes=_parse_prep_time(prep_time),
            difficulty=difficulty,
            ingredients=_parse_ingredients(payload['ingredients']),
            category_ids=category_ids,
        )


def _load_categories(category_ids):
    if not category_ids:
        return []
    found = Category.query.filter(Category.id.in_(category_ids)).all()
    by_id = {category.id: category for category in found}
    missing = [category_id for category_id in category_ids if category_id not in by_id]
    if missing:
        raise ValidationError(f"Unknown category ids: {', '.join(map(str, missing))}", field='categoryIds')
    return [by_id[category_id] for category_id in category_ids]


def _load_manageable_recipe(subject, recipe_id, verb):
    """The recipe, if the subject owns it or is an admin."""
    load_active_user(subject)
    recipe = db.session.get(Recipe, recipe_id)
    if recipe is None:
        raise NotFound("Recipe not found")
    if not subject.is_admin and not recipe.is_owned_by(subject.subject_id):
        raise AuthorizationDenied(f"Unauthorized to {verb} this recipe")
    return recipe


def create_recipe(subject, data, images=(), blob_store=None):
    """Insert a recipe with its ingredients, categories and images; returns the new id.

    Images are stored in ``blob_store`` one by one as the transaction runs. If
    a later step fails the rows are rolled back but blobs already stored stay
    behind (there is no delete hook); they are logged as orphaned.
    """
    author = load_active_user(subject)
    images = list(images)
    if len(images) > MAX_RECIPE_IMAGES:
        raise ValidationError(f"A recipe can have at most {MAX_RECIPE_IMAGES} images", field='images')
    if images and blob_store is None:
        raise ValueError("blob_store is required to store recipe images")
    categories = _load_categories(data.category_ids)

    stored_urls = []
    try:
        with unit_of_work("recipe create") as session:
            recipe = Recipe(
                user_id=author.id,
                title=data.title,
                description=data.description,
                prep_time_minutes=data.prep_time_minutes,
                difficulty=data.difficulty,
                is_edited=False,
            )
            session.add(recipe)
            session.flush()

            for item in data.ingredients:
                session.add(RecipeIngredient(recipe_id=recipe.id, item=item))

            recipe.categories.extend(categories)

            for position, upload in enumerate(images):
                url = blob_store.store(upload.data, upload.content_hint)
                stored_urls.append(url)
                session.add(RecipeImage(recipe_id=recipe.id, image_url=url, display_order=position))

            recipe_id = recipe.id
    except Exception:
        if stored_urls:
            logger.warning("Recipe create rolled back; %d stored image(s) left orphaned: %s",
                           len(stored_urls), ", ".join(stored_urls))
        raise

    logger.info("User %s created recipe %s (%d ingredients, %d categories, %d images)",
                author.id, recipe_id, len(data.ingredients), len(categories), len(images))
    return recipe_id


def update_recipe(subject, recipe_id, data):
    """Replace a recipe's fields, ingredient list and (when submitted) categories.

    Child lists are deleted and reinserted, so the stored lists end up exactly
    equal to the submitted ones. Images are not touched.
    """
    recipe = _load_manageable_recipe(subject, recipe_id, 'edit')
    categories = _load_categories(data.category_ids) if data.category_ids is not None else None

    with unit_of_work("recipe update") as session:
        recipe.title = data.title
        recipe.description = data.description
        recipe.prep_time_minutes = data.prep_time_minutes
        recipe.difficulty = data.difficulty
        recipe.is_edited = True

        recipe.ingredients.clear()
        session.flush()
        for item in data.ingredients:
            recipe.ingredients.append(RecipeIngredient(item=item))

        if categories is not None:
            recipe.categories.clear()
            session.flush()
            recipe.categories.extend(categories)

    logger.info("User %s updated recipe %s", subject.subject_id, recipe_id)


def delete_recipe(subject, recipe_id):
    """Delete a recipe together with every row that depends on it."""
    recipe = _load_manageable_recipe(subject, recipe_id, 'delete')

    with unit_of_work("recipe delete") as session:
        session.delete(recipe)

    logger.info("User %s deleted recipe %s", subject.subject_id, recipe_id)
