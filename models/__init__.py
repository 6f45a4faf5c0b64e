import sqlite3
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()


def utcnow():
    # Naive UTC, the way the columns are stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


# SQLite's lower()/LIKE only fold ASCII; search needs "Ñ" == "ñ"
@event.listens_for(Engine, "connect")
def _register_sqlite_functions(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        dbapi_connection.create_function('casefold', 1, _casefold)


# --- Association Tables ---
recipe_categories = db.Table('recipe_categories',
    db.Column('recipe_id', db.Integer, db.ForeignKey('recipes.id', ondelete='CASCADE'), primary_key=True),
    db.Column('category_id', db.Integer, db.ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True)
)

# --- Import Models ---
from .User import User
from .Category import Category
from .Recipe import Recipe
from .RecipeIngredient import RecipeIngredient
from .RecipeImage import RecipeImage
from .Comment import Comment
from .Reaction import RecipeReaction, CommentReaction
