from models import db, utcnow


class Comment(db.Model):
    __tablename__ = 'comments'

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Relationships
    recipe = db.relationship('Recipe', back_populates='comments')
    author = db.relationship('User', back_populates='comments')
    reactions = db.relationship('CommentReaction', back_populates='comment', cascade="all, delete-orphan")

    def is_authored_by(self, user_id):
        return self.user_id == user_id
