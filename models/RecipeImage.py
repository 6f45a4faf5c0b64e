from models import db, utcnow


class RecipeImage(db.Model):
    __tablename__ = 'recipe_images'
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False, index=True)
    image_url = db.Column(db.String(255), nullable=False)
    # 0 is the cover image
    display_order = db.Column(db.Integer, nullable=False, default=0)
    uploaded_at = db.Column(db.DateTime, default=utcnow)

    # Define relationships
    recipe = db.relationship('Recipe', back_populates='images')
