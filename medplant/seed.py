"""
seed.py - Load the bundled medicinal plant reference data into the database.
"""

import json
import logging

import click
from flask.cli import with_appcontext

from medplant.config import DATA_DIR
from medplant.models import db, Plant

logger = logging.getLogger(__name__)


def load_seed_plants(path=None):
    with open(path or DATA_DIR / "plants.json", encoding="utf-8") as f:
        return json.load(f)


def seed_plants(records=None):
    """Insert the seed plants when the plant table is empty. Returns the number inserted."""
    if db.session.query(Plant.id).first() is not None:
        return 0

    records = records if records is not None else load_seed_plants()
    db.session.add_all(Plant(**record) for record in records)
    db.session.commit()
    logger.info(f"Seeded {len(records)} plants")
    return len(records)


@click.command("init-db")
@click.option("--drop", is_flag=True, help="Drop existing tables first.")
@with_appcontext
def init_db_command(drop):
    """Create tables and load the seed plants."""
    if drop:
        db.drop_all()
    db.create_all()
    inserted = seed_plants()
    click.echo(f"Database ready ({inserted} plants added).")
