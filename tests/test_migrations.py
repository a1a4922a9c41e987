"""Runs the alembic migration against a throwaway SQLite file."""

import tempfile
import unittest
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


class TestMigrationOnSqlite(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.url = f"sqlite:///{Path(self.tmpdir.name) / 'warden.db'}"
        self.config = Config()
        self.config.set_main_option("script_location", str(ALEMBIC_DIR))
        self.config.set_main_option("sqlalchemy.url", self.url)
        self.engine = create_engine(self.url)

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_upgrade_creates_tables_and_seeds_roles(self) -> None:
        command.upgrade(self.config, "head")

        tables = set(inspect(self.engine).get_table_names())
        self.assertTrue({"roles", "users"} <= tables)
        with self.engine.connect() as conn:
            names = {row[0] for row in conn.execute(text("SELECT name FROM roles"))}
        self.assertEqual(names, {"admin", "reader"})

    def test_timestamp_defaults_are_filled_by_the_database(self) -> None:
        command.upgrade(self.config, "head")

        with self.engine.begin() as conn:
            role_id = conn.execute(text("SELECT id FROM roles WHERE name = 'reader'")).scalar_one()
            conn.execute(
                text(
                    "INSERT INTO users (name, email, role_id, password) "
                    "VALUES ('Reader', 'reader@example.com', :role_id, 'hash')"
                ),
                {"role_id": role_id},
            )
            created_on, updated_on = conn.execute(
                text("SELECT created_on, updated_on FROM users")
            ).one()
        self.assertIsNotNone(created_on)
        self.assertIsNotNone(updated_on)

    def test_downgrade_drops_tables(self) -> None:
        command.upgrade(self.config, "head")
        command.downgrade(self.config, "base")

        tables = set(inspect(self.engine).get_table_names())
        self.assertFalse({"roles", "users"} & tables)


if __name__ == "__main__":
    unittest.main()
