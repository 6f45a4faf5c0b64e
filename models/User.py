from models import db, utcnow
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ('user', 'admin')
STATUSES = ('active', 'banned')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    bio = db.Column(db.Text, nullable=False, default='')
    avatar_url = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False, default='user')
    status = db.Column(db.String(20), nullable=False, default='active')
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Relationships
    recipes = db.relationship('Recipe', back_populates='user')
    comments = db.relationship('Comment', back_populates='author')

    @property
    def is_banned(self):
        return self.status == 'banned'

    # Hash password before storing
    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    # Check if a password matches the stored hash
    def check_password(self, password):
        return check_password_hash(self.password_hash, password)
