"""Initial schema: users, categories, recipes, comments and reactions.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 12:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

DEFAULT_CATEGORIES = (
    'Desayuno', 'Almuerzo', 'Cena', 'Postres', 'Vegetariano',
    'Vegano', 'Sin gluten', 'Bebidas', 'Entrantes', 'Panadería',
)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=50), nullable=False),
        sa.Column('last_name', sa.String(length=50), nullable=False),
        sa.Column('bio', sa.Text(), nullable=False),
        sa.Column('avatar_url', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    categories = op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'recipes',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('prep_time_minutes', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('is_edited', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.CheckConstraint('prep_time_minutes >= 0', name='ck_recipes_prep_time_non_negative'),
    )
    op.create_index('ix_recipes_user_id', 'recipes', ['user_id'], unique=False)
    op.create_index('ix_recipes_created_at', 'recipes', ['created_at'], unique=False)

    op.create_table(
        'recipe_ingredients',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_recipe_ingredients_recipe_id', 'recipe_ingredients', ['recipe_id'], unique=False)

    op.create_table(
        'recipe_images',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=255), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_recipe_images_recipe_id', 'recipe_images', ['recipe_id'], unique=False)

    op.create_table(
        'recipe_categories',
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('recipe_id', 'category_id'),
    )

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
    )
    op.create_index('ix_comments_recipe_id', 'comments', ['recipe_id'], unique=False)

    op.create_table(
        'recipe_reactions',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('recipe_id', sa.Integer(), nullable=False),
        sa.Column('reaction_type', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['recipe_id'], ['recipes.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'recipe_id', name='uq_recipe_reactions_user_recipe'),
    )
    op.create_index('ix_recipe_reactions_recipe_id', 'recipe_reactions', ['recipe_id'], unique=False)

    op.create_table(
        'comment_reactions',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('comment_id', sa.Integer(), nullable=False),
        sa.Column('reaction_type', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['comment_id'], ['comments.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'comment_id', name='uq_comment_reactions_user_comment'),
    )
    op.create_index('ix_comment_reactions_comment_id', 'comment_reactions', ['comment_id'], unique=False)

    op.bulk_insert(categories, [{'name': name} for name in DEFAULT_CATEGORIES])


def downgrade():
    op.drop_index('ix_comment_reactions_comment_id', table_name='comment_reactions')
    op.drop_table('comment_reactions')
    op.drop_index('ix_recipe_reactions_recipe_id', table_name='recipe_reactions')
    op.drop_table('recipe_reactions')
    op.drop_index('ix_comments_recipe_id', table_name='comments')
    op.drop_table('comments')
    op.drop_table('recipe_categories')
    op.drop_index('ix_recipe_images_recipe_id', table_name='recipe_images')
    op.drop_table('recipe_images')
    op.drop_index('ix_recipe_ingredients_recipe_id', table_name='recipe_ingredients')
    op.drop_table('recipe_ingredients')
    op.drop_index('ix_recipes_created_at', table_name='recipes')
    op.drop_index('ix_recipes_user_id', table_name='recipes')
    op.drop_table('recipes')
    op.drop_table('categories')
    op.drop_table('users')
