from __future__ import annotations

import functools

import pytest


def test_seed_step_satisfies_the_executor_contract() -> None:
    from pgseed.seed import SeedExec, SeedStep

    assert isinstance(SeedStep(), SeedExec)


def test_seed_step_without_function_raises() -> None:
    from pgseed.seed import SeedStep

    with pytest.raises(ValueError, match="no function configured"):
        SeedStep().get_seed()
    with pytest.raises(RuntimeError, match="no transaction"):
        SeedStep().tx


def test_seed_name_prefers_executor_name_then_work_function() -> None:
    from pgseed.seed import Seed, SeedStep

    class CountriesSeed(SeedStep):
        def __init__(self) -> None:
            super().__init__()
            self.config(self.load_countries)

        def load_countries(self) -> None:
            pass

    assert Seed(SeedStep(fx=lambda: None, name="users")).name == "users"
    s = Seed(CountriesSeed())
    assert s.name.endswith("CountriesSeed.load_countries")
    assert len(s.name) <= 64
    assert s.fx_name == "load_countries"


def test_fx_name_unwraps_partials_and_callables() -> None:
    from pgseed.seed import fx_name

    def add_rows(n: int) -> None:
        pass

    class Loader:
        def __call__(self) -> None:
            pass

    assert fx_name(add_rows) == "add_rows"
    assert fx_name(functools.partial(add_rows, 3)) == "add_rows"
    assert fx_name(Loader()) == "Loader"


def test_seed_error_message_names_the_function() -> None:
    from pgseed.errors import SeedError

    err = SeedError("add_column", RuntimeError("bad column"))
    assert str(err) == "cannot run seeding 'add_column': bad column"
    assert err.seed_name == "add_column"


def test_unnamed_steps_get_distinct_names_from_their_functions() -> None:
    from pgseed.seed import Seed, SeedStep

    def create_roles() -> None:
        pass

    def create_users() -> None:
        pass

    roles = Seed(SeedStep(fx=create_roles)).name
    users = Seed(SeedStep(fx=create_users)).name
    assert roles != users
    assert roles.endswith("create_roles")
    assert Seed(SeedStep()).name == "SeedStep"


def test_fx_qualname_keeps_the_tail_within_limit() -> None:
    from pgseed.seed import fx_qualname

    def a_rather_long_function_name_used_for_seeding_reference_tables() -> None:
        pass

    name = fx_qualname(a_rather_long_function_name_used_for_seeding_reference_tables, max_len=64)
    assert len(name) == 64
    assert name.endswith("a_rather_long_function_name_used_for_seeding_reference_tables")
