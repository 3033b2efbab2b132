from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class SeederSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="forbid")

    # Connection (unset values fall back to the defaults passed to val_or_def).
    pg_host: str | None = None
    pg_port: str | None = None
    pg_user: str | None = None
    pg_password: str | None = None
    pg_database: str | None = None
    pg_schema: str | None = None

    log_level: str = "info"
    log_json: bool = True

    def val_or_def(self, key: str, default: str) -> str:
        """
        Look up a dotted config key (e.g. "pg.host") and fall back to `default`
        when it is unknown, unset or empty.
        """
        field = key.replace(".", "_")
        if field not in type(self).model_fields:
            return default
        value = getattr(self, field)
        if value is None or str(value) == "":
            return default
        return str(value)


SETTINGS = SeederSettings()
