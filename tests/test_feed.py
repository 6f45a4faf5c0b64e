from datetime import timedelta

from werkzeug.datastructures import MultiDict

from models import db, utcnow, Recipe
from services.feed import RecipeFilters, parse_category_ids


def set_created_at(app, recipe_id, created_at):
    with app.app_context():
        db.session.get(Recipe, recipe_id).created_at = created_at
        db.session.commit()


def titles(resp):
    assert resp.status_code == 200
    return [recipe["title"] for recipe in resp.get_json()]


def test_feed_is_newest_first(client, app, alice, create_recipe):
    now = utcnow()
    for title, age in [('t1', 3), ('t3', 1), ('t2', 2)]:
        recipe_id = create_recipe(alice, title=title)
        set_created_at(app, recipe_id, now - timedelta(hours=age))

    assert titles(client.get('/api/recipes')) == ['t3', 't2', 't1']


def test_ties_on_created_at_fall_back_to_id(client, app, alice, create_recipe):
    now = utcnow()
    ids = [create_recipe(alice, title=title) for title in ('first', 'second')]
    for recipe_id in ids:
        set_created_at(app, recipe_id, now)

    assert titles(client.get('/api/recipes')) == ['second', 'first']


def test_summary_shape(client, alice, bob, create_recipe):
    recipe_id = create_recipe(alice, description='Arroz con cosas')
    client.post(f'/api/recipes/{recipe_id}/comments', json={"content": "Hola"}, headers=bob.headers)

    summary = client.get('/api/recipes').get_json()[0]
    assert summary["id"] == recipe_id
    assert summary["user_id"] == alice.id
    assert summary["username"] == "alice"
    assert summary["description"] == "Arroz con cosas"
    assert summary["prep_time_minutes"] == 45
    assert summary["difficulty"] == "Media"
    assert summary["likes_count"] == 0
    assert summary["comments_count"] == 1
    assert summary["my_reaction"] is None
    assert summary["cover_image"] is None


def test_search_matches_title_or_username(client, make_user, alice, create_recipe):
    fan = make_user('paella_fan')
    create_recipe(alice, title='Paella Valenciana')
    create_recipe(fan, title='Gazpacho')
    create_recipe(alice, title='Croquetas')

    assert titles(client.get('/api/recipes', query_string={"q": "paella"})) == ['Gazpacho', 'Paella Valenciana']
    assert titles(client.get('/api/recipes/search', query_string={"q": "PAELLA"})) == ['Gazpacho', 'Paella Valenciana']
    assert titles(client.get('/api/recipes', query_string={"q": "sushi"})) == []


def test_search_folds_accented_capitals(client, make_user, alice, create_recipe):
    chef = make_user('Ñandú')
    create_recipe(alice, title='Ñoquis caseros')
    create_recipe(alice, title='ÁRROZ CON LECHE')
    create_recipe(chef, title='Tortilla')

    assert titles(client.get('/api/recipes/search', query_string={"q": "ñoquis"})) == ['Ñoquis caseros']
    assert titles(client.get('/api/recipes', query_string={"q": "árroz"})) == ['ÁRROZ CON LECHE']
    assert titles(client.get('/api/recipes', query_string={"q": "ÑANDÚ"})) == ['Tortilla']


def test_search_treats_wildcards_literally(client, alice, create_recipe):
    create_recipe(alice, title='Tarta 100% cacao')
    create_recipe(alice, title='Tarta de queso')

    assert titles(client.get('/api/recipes', query_string={"q": "100%"})) == ['Tarta 100% cacao']
    assert titles(client.get('/api/recipes', query_string={"q": "%"})) == ['Tarta 100% cacao']
    assert titles(client.get('/api/recipes', query_string={"q": "_"})) == []


def test_my_reaction_depends_on_the_viewer(client, alice, bob, create_recipe):
    liked = create_recipe(bob, title='R')
    create_recipe(bob, title='R2')
    client.post(f'/api/recipes/{liked}/react', json={"type": "like"}, headers=alice.headers)

    anonymous = {r["title"]: r["my_reaction"] for r in client.get('/api/recipes').get_json()}
    assert anonymous == {"R": None, "R2": None}

    mine = {r["title"]: r["my_reaction"] for r in client.get('/api/recipes', headers=alice.headers).get_json()}
    assert mine == {"R": "like", "R2": None}

    theirs = {r["title"]: r["my_reaction"] for r in client.get('/api/recipes', headers=bob.headers).get_json()}
    assert theirs == {"R": None, "R2": None}


def test_a_bad_token_reads_as_anonymous(client, alice, bob, create_recipe):
    recipe_id = create_recipe(bob)
    client.post(f'/api/recipes/{recipe_id}/react', json={"type": "like"}, headers=alice.headers)

    resp = client.get('/api/recipes', headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 200
    assert resp.get_json()[0]["my_reaction"] is None
    assert resp.get_json()[0]["likes_count"] == 1


def test_category_filter_matches_any_selected_category(client, alice, categories, create_recipe):
    create_recipe(alice, title='Tostadas', category_ids=[categories['Desayuno']])
    create_recipe(alice, title='Flan', category_ids=[categories['Postres'], categories['Sin gluten']])
    create_recipe(alice, title='Ensalada', category_ids=[categories['Vegano']])
    create_recipe(alice, title='Sin categoría')

    selected = f"{categories['Desayuno']},{categories['Postres']}"
    assert titles(client.get('/api/recipes', query_string={"categoryIds": selected})) == ['Flan', 'Tostadas']

    # Repeated parameters work too
    query = MultiDict([("categories", str(categories["Vegano"])), ("categories", str(categories["Sin gluten"]))])
    assert titles(client.get('/api/recipes', query_string=query)) == ['Ensalada', 'Flan']


def test_difficulty_and_recency_filters(client, app, alice, create_recipe):
    now = utcnow()
    recent = create_recipe(alice, title='Reciente', difficulty='Fácil')
    old = create_recipe(alice, title='Antigua', difficulty='Fácil')
    ancient = create_recipe(alice, title='Muy antigua', difficulty='Difícil')
    set_created_at(app, recent, now - timedelta(days=2))
    set_created_at(app, old, now - timedelta(days=40))
    set_created_at(app, ancient, now - timedelta(days=400))

    assert titles(client.get('/api/recipes', query_string={"time": "week"})) == ['Reciente']
    assert titles(client.get('/api/recipes', query_string={"time": "month"})) == ['Reciente']
    assert titles(client.get('/api/recipes', query_string={"time": "year"})) == ['Reciente', 'Antigua']
    assert titles(client.get('/api/recipes', query_string={"difficulty": "Fácil"})) == ['Reciente', 'Antigua']
    assert titles(client.get('/api/recipes', query_string={"difficulty": "Difícil", "time": "year"})) == []


def test_unrecognized_filter_values_are_ignored(client, alice, create_recipe):
    create_recipe(alice, title='A')
    create_recipe(alice, title='B')

    resp = client.get('/api/recipes', query_string={
        "time": "decade",
        "difficulty": "extreme",
        "categoryIds": "abc,,",
    })
    assert titles(resp) == ['B', 'A']


def test_filters_from_args():
    filters = RecipeFilters.from_args(MultiDict([
        ("q", "  tarta "),
        ("time", "month"),
        ("difficulty", "Media"),
        ("categoryIds", "1,2"),
        ("categoryIds", "x"),
        ("categories", "3"),
    ]))
    assert filters == RecipeFilters(q="tarta", time="month", difficulty="Media", category_ids=frozenset({1, 2, 3}))
    assert not filters.is_empty
    assert RecipeFilters.from_args({}).is_empty


def test_parse_category_ids_skips_junk():
    assert parse_category_ids(["1, 2", 3, True, None, ["4", "five"], "-1"]) == {1, 2, 3, 4}


def test_recipe_detail(client, app, alice, bob, categories, create_recipe):
    recipe_id = create_recipe(alice, ingredients=['arroz', 'pollo', 'judías'],
                              category_ids=[categories['Cena'], categories['Almuerzo']])
    first = client.post(f'/api/recipes/{recipe_id}/comments', json={"content": "Primero"},
                        headers=bob.headers).get_json()["comment"]
    client.post(f'/api/recipes/{recipe_id}/comments', json={"content": "Segundo"}, headers=alice.headers)
    client.post(f"/api/comments/{first['id']}/react", json={"type": "like"}, headers=alice.headers)

    detail = client.get(f'/api/recipes/{recipe_id}', headers=alice.headers).get_json()
    assert detail["ingredients"] == ['arroz', 'pollo', 'judías']
    assert detail["categories"] == ['Almuerzo', 'Cena']
    assert detail["category_ids"] == [categories['Almuerzo'], categories['Cena']]
    assert detail["images"] == []
    assert detail["comments_count"] == 2
    assert [c["content"] for c in detail["comments"]] == ['Segundo', 'Primero']
    assert detail["comments"][1]["username"] == 'bob'
    assert detail["comments"][1]["likes_count"] == 1
    assert detail["comments"][1]["my_reaction"] == 'like'


def test_missing_recipe_detail(client):
    resp = client.get('/api/recipes/12345')
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Recipe not found", "code": "not_found"}


def test_categories_are_listed_by_name(client):
    names = [c["name"] for c in client.get('/api/categories').get_json()]
    assert names == sorted(names)
    assert 'Postres' in names and len(names) == 10


def test_public_profile_and_own_recipes(client, alice, bob, create_recipe):
    create_recipe(alice, title='De Alice')
    create_recipe(bob, title='De Bob')

    profile = client.get('/api/users/alice').get_json()
    assert profile["profile"]["username"] == 'alice'
    assert "email" not in profile["profile"]
    assert [r["title"] for r in profile["recipes"]] == ['De Alice']

    mine = client.get('/api/user/recipes', headers=bob.headers).get_json()
    assert [r["title"] for r in mine] == ['De Bob']

    assert client.get('/api/users/nobody').status_code == 404
    assert client.get('/api/user/recipes').status_code == 401
