from __future__ import annotations

import sqlalchemy as sa

from pgseed.seed import SeedStep


CALLS: list[str] = []


class RolesSeed(SeedStep):
    def __init__(self) -> None:
        super().__init__(name="roles")
        self.config(self.create_roles)

    def create_roles(self) -> None:
        CALLS.append("roles")
        self.tx.execute(sa.text("INSERT INTO roles (name) VALUES ('admin')"))


def create_users() -> None:
    CALLS.append("users")


SEEDS = [RolesSeed(), SeedStep(fx=create_users, name="users")]


def build_seeds() -> list[SeedStep]:
    return [RolesSeed()]


NOT_SEEDS = [object()]
