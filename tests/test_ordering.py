from sqlalchemy import text

from obf.models import User
from obf.services.ordering import sql_fullname, users_order_by_sql


def test_default_order_without_search():
    assert users_order_by_sql() == ("last_name, first_name, id", {})
    assert users_order_by_sql("u") == ("u.last_name, u.first_name, u.id", {})


def test_search_puts_exact_matches_first():
    sort, params = users_order_by_sql("u", "Ada Lovelace", extra_fields=["email"])

    assert sort == (
        "CASE WHEN u.first_name || ' ' || u.last_name = :usersortexact1"
        " OR LOWER(u.first_name) = LOWER(:usersortexact2)"
        " OR LOWER(u.last_name) = LOWER(:usersortexact3)"
        " OR LOWER(u.email) = LOWER(:usersortexact4)"
        " THEN 0 ELSE 1 END, u.last_name, u.first_name, u.id"
    )
    assert params == {f"usersortexact{i}": "Ada Lovelace" for i in range(1, 5)}


def test_fullname_uses_concat_on_mysql():
    assert sql_fullname("first_name", "last_name", "mysql") == "CONCAT(first_name, ' ', last_name)"


def test_order_clause_runs_against_the_database(session):
    session.add_all([
        User(id=1, email="a@example.com", first_name="Zed", last_name="Able"),
        User(id=2, email="b@example.com", first_name="Ann", last_name="Baker"),
        User(id=3, email="c@example.com", first_name="Ann", last_name="Able"),
    ])
    session.commit()

    sort, params = users_order_by_sql("users", "baker")
    rows = session.query(User).order_by(text(sort)).params(**params).all()
    assert [u.id for u in rows] == [2, 3, 1]

    sort, params = users_order_by_sql("users")
    assert [u.id for u in session.query(User).order_by(text(sort)).all()] == [3, 1, 2]
