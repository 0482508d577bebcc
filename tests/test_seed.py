from medplant.models import Plant, db
from medplant.seed import seed_plants


def test_app_starts_seeded(app):
    with app.app_context():
        assert Plant.query.count() == 10
        assert seed_plants() == 0


def test_init_db_command(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["init-db"])
    assert "0 plants added" in result.output

    result = runner.invoke(args=["init-db", "--drop"])
    assert "10 plants added" in result.output
    with app.app_context():
        assert db.session.query(Plant).filter_by(name="Neem").one().family == "Meliaceae"
