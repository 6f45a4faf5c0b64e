from models import db, utcnow

DIFFICULTIES = ('Fácil', 'Media', 'Difícil')


class Recipe(db.Model):
    __tablename__ = 'recipes'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    prep_time_minutes = db.Column(db.Integer, nullable=False, default=0)
    difficulty = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    is_edited = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.CheckConstraint('prep_time_minutes >= 0', name='ck_recipes_prep_time_non_negative'),
    )

    # Relationships
    user = db.relationship('User', back_populates='recipes')
    # Insertion order is display order
    ingredients = db.relationship('RecipeIngredient', back_populates='recipe', order_by='RecipeIngredient.id',
                                  cascade="all, delete-orphan")
    images = db.relationship('RecipeImage', back_populates='recipe', order_by='RecipeImage.display_order',
                             cascade="all, delete-orphan")
    categories = db.relationship('Category', secondary='recipe_categories', back_populates='recipes')
    comments = db.relationship('Comment', back_populates='recipe', cascade="all, delete-orphan")
    reactions = db.relationship('RecipeReaction', back_populates='recipe', cascade="all, delete-orphan")

    def is_owned_by(self, user_id):
        return self.user_id == user_id
