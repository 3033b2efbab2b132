from __future__ import annotations

from collections.abc import Iterator

import pytest
import sqlalchemy as sa


@pytest.fixture(scope="session")
def postgres_url() -> Iterator[sa.URL]:
    testcontainers = pytest.importorskip("testcontainers.postgres")
    try:
        pg = testcontainers.PostgresContainer("postgres:16")
        pg.start()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"docker unavailable: {exc}")
    try:
        # Only host/port/credentials are used; the driver prefix testcontainers picks does not matter.
        yield sa.make_url(pg.get_connection_url())
    finally:
        pg.stop()


@pytest.fixture()
def pg_settings(postgres_url: sa.URL, request: pytest.FixtureRequest):
    from pgseed.settings import SeederSettings

    # One database per test keeps pre_setup observable.
    return SeederSettings(
        pg_host=postgres_url.host,
        pg_port=str(postgres_url.port),
        pg_user=postgres_url.username,
        pg_password=postgres_url.password,
        pg_database=f"seed_{request.node.name[:40].lower()}",
        pg_schema="public",
    )


@pytest.fixture()
def make_seeder(pg_settings):
    from pgseed.seeder import Seeder

    built: list[Seeder] = []

    def _make(**kw) -> Seeder:
        seeder = Seeder.from_settings(pg_settings, **kw)
        built.append(seeder)
        return seeder

    yield _make
    for seeder in built:
        seeder.close()
