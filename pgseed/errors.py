from __future__ import annotations


class SeederError(Exception):
    pass


class SeederConnectionError(SeederError):
    pass


class SetupError(SeederError):
    pass


class TransactionError(SeederError):
    pass


class SeedError(SeederError):
    """A seed step's work function raised; the step's transaction was rolled back."""

    def __init__(self, fx_name: str, cause: BaseException, seed_name: str | None = None) -> None:
        self.fx_name = fx_name
        self.seed_name = seed_name or fx_name
        self.cause = cause
        super().__init__(f"cannot run seeding '{fx_name}': {cause}")


class CommitError(SeederError):
    def __init__(self, fx_name: str, cause: BaseException) -> None:
        self.fx_name = fx_name
        self.cause = cause
        super().__init__(f"commit error for '{fx_name}': {cause}")
