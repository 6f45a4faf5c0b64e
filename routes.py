from flask import Blueprint, current_app, jsonify, request, send_from_directory
from flask_jwt_extended import jwt_required

from errors import ValidationError
from services import comments, feed, reactions, recipes, users
from services.blob_store import Upload, get_blob_store
from services.identity import current_subject, current_viewer, issue_token

api = Blueprint('api', __name__)

LIST_FIELDS = ('categoryIds', 'categories', 'ingredients')


def _payload():
    """Request body as a dict: JSON, or the form fields of a multipart request."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Malformed JSON body")
        if not isinstance(data, dict):
            raise ValidationError("Expected a JSON object")
        return data

    data = request.form.to_dict()
    # Repeated form fields carry one list entry each
    for key in LIST_FIELDS:
        values = request.form.getlist(key)
        if len(values) > 1:
            data[key] = values
    return data


def _uploads(*field_names):
    files = []
    for name in field_names:
        for storage in request.files.getlist(name):
            if storage and storage.filename:
                files.append(Upload(storage.read(), storage.filename))
    return files


def _single_upload(name):
    files = _uploads(name)
    return files[0] if files else None


@api.route("/ping")
def ping():
    return "pong", 200


## AUTHENTICATION ROUTES ##

@api.route('/api/auth/register', methods=['POST'])
def register():
    user = users.register_user(_payload(), avatar=_single_upload('avatarFile'), blob_store=get_blob_store())
    return jsonify({
        "message": "User registered successfully",
        "token": issue_token(user),
        "user": users.serialize_user(user, private=True),
    }), 201


@api.route('/api/auth/login', methods=['POST'])
def login():
    data = _payload()
    user = users.authenticate(data.get('email') or data.get('username'), data.get('password'))
    return jsonify(token=issue_token(user), user=users.serialize_user(user, private=True)), 200


@api.route('/api/auth/whoami')
@jwt_required()
def whoami():
    user = users.load_active_user(current_subject())
    return jsonify(users.serialize_user(user, private=True))


## USER ROUTES ##

@api.route('/api/user/check-username', methods=['GET'])
def check_username():
    available = users.is_username_available(request.args.get('username'), current_viewer())
    return jsonify({"available": available})


@api.route('/api/user/profile', methods=['PUT'])
@jwt_required()
def update_profile():
    data = _payload()
    remove_avatar = str(data.get('removeAvatar', '')).lower() == 'true' or data.get('removeAvatar') is True
    user = users.update_profile(
        current_subject(),
        data,
        avatar=_single_upload('avatarFile'),
        remove_avatar=remove_avatar,
        blob_store=get_blob_store(),
    )
    return jsonify({"message": "Profile updated successfully", "user": users.serialize_user(user, private=True)})


@api.route('/api/user/recipes', methods=['GET'])
@jwt_required()
def my_recipes():
    subject = current_subject()
    return jsonify(feed.list_recipes(subject, author_id=subject.subject_id))


@api.route('/api/users/<username>', methods=['GET'])
def public_profile(username):
    return jsonify(feed.get_public_profile(username, current_viewer()))


## RECIPE & CATEGORY ROUTES ##

@api.route('/api/categories', methods=['GET'])
def get_categories():
    return jsonify(feed.list_categories())


@api.route('/api/recipes', methods=['GET'])
def get_feed():
    filters = feed.RecipeFilters.from_args(request.args)
    return jsonify(feed.list_recipes(current_viewer(), filters))


@api.route('/api/recipes/search', methods=['GET'])
def search_recipes():
    filters = feed.RecipeFilters.from_args(request.args)
    return jsonify(feed.list_recipes(current_viewer(), filters))


@api.route('/api/recipes/<int:recipe_id>', methods=['GET'])
def get_recipe(recipe_id):
    return jsonify(feed.get_recipe_detail(recipe_id, current_viewer()))


@api.route('/api/recipes', methods=['POST'])
@jwt_required()
def create_recipe():
    subject = current_subject()
    data = recipes.RecipeInput.from_payload(_payload())
    recipe_id = recipes.create_recipe(
        subject,
        data,
        images=_uploads('images', 'recipeImages'),
        blob_store=get_blob_store(),
    )
    return jsonify({"message": "Recipe created successfully", "recipeId": recipe_id}), 201


@api.route('/api/recipes/<int:recipe_id>', methods=['PUT'])
@jwt_required()
def update_recipe(recipe_id):
    subject = current_subject()
    data = recipes.RecipeInput.from_payload(_payload())
    recipes.update_recipe(subject, recipe_id, data)
    return jsonify({"message": "Recipe updated successfully", "recipeId": recipe_id}), 200


@api.route('/api/recipes/<int:recipe_id>', methods=['DELETE'])
@jwt_required()
def delete_recipe(recipe_id):
    recipes.delete_recipe(current_subject(), recipe_id)
    return jsonify({"message": f"Recipe {recipe_id} deleted successfully"}), 200


@api.route('/api/recipes/<int:recipe_id>/react', methods=['POST'])
@jwt_required()
def react_to_recipe(recipe_id):
    result = reactions.toggle_recipe_reaction(current_subject(), recipe_id, _payload().get('type'))
    return jsonify(result.to_dict())


## COMMENT ROUTES ##

@api.route('/api/recipes/<int:recipe_id>/comments', methods=['POST'])
@jwt_required()
def create_comment(recipe_id):
    comment = comments.create_comment(current_subject(), recipe_id, _payload().get('content'))
    return jsonify({"message": "Comment published", "comment": comment}), 201


@api.route('/api/comments/<int:comment_id>', methods=['PUT'])
@jwt_required()
def edit_comment(comment_id):
    comment = comments.edit_comment(current_subject(), comment_id, _payload().get('content'))
    return jsonify({"message": "Comment updated", "content": comment.content})


@api.route('/api/comments/<int:comment_id>', methods=['DELETE'])
@jwt_required()
def delete_comment(comment_id):
    comments.delete_comment(current_subject(), comment_id)
    return jsonify({"message": "Comment deleted"})


@api.route('/api/comments/<int:comment_id>/react', methods=['POST'])
@jwt_required()
def react_to_comment(comment_id):
    result = reactions.toggle_comment_reaction(current_subject(), comment_id, _payload().get('type'))
    return jsonify(result.to_dict())


## UPLOADED FILES ##

@api.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
