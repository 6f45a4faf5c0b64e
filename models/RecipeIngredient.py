from models import db


class RecipeIngredient(db.Model):
    __tablename__ = 'recipe_ingredients'
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False, index=True)
    item = db.Column(db.String(255), nullable=False)

    # Define relationships
    recipe = db.relationship('Recipe', back_populates='ingredients')
