from models import db, utcnow

REACTION_TYPES = ('like', 'dislike')


class RecipeReaction(db.Model):
    __tablename__ = 'recipe_reactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False, index=True)
    reaction_type = db.Column(db.String(10), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # One reaction per user and recipe
    __table_args__ = (
        db.UniqueConstraint('user_id', 'recipe_id', name='uq_recipe_reactions_user_recipe'),
    )

    # Relationships
    recipe = db.relationship('Recipe', back_populates='reactions')


class CommentReaction(db.Model):
    __tablename__ = 'comment_reactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    comment_id = db.Column(db.Integer, db.ForeignKey('comments.id', ondelete='CASCADE'), nullable=False, index=True)
    reaction_type = db.Column(db.String(10), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # One reaction per user and comment
    __table_args__ = (
        db.UniqueConstraint('user_id', 'comment_id', name='uq_comment_reactions_user_comment'),
    )

    # Relationships
    comment = db.relationship('Comment', back_populates='reactions')
