from models import db

DEFAULT_CATEGORIES = (
    'Desayuno', 'Almuerzo', 'Cena', 'Postres', 'Vegetariano',
    'Vegano', 'Sin gluten', 'Bebidas', 'Entrantes', 'Panadería',
)


class Category(db.Model):
    __tablename__ = 'categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)

    # Define relationships
    recipes = db.relationship('Recipe', secondary='recipe_categories', back_populates='categories')
