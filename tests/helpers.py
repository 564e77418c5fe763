from phastauth.core.settings import Settings

TEST_SECRET = "test-secret-key-for-unit-tests"


def make_settings(database_url: str = "sqlite:///:memory:", **overrides) -> Settings:
    """
    Settings with cheap argon2 parameters, independent of any .env file.
    """
    values = dict(
        JWT_SECRET_KEY=TEST_SECRET,
        DATABASE_URL=database_url,
        ARGON2_TIME_COST=1,
        ARGON2_MEMORY_COST=1024,
        ARGON2_PARALLELISM=1,
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)
