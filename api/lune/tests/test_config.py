from lune.core.config import DEFAULT_CORS_ORIGINS, Settings


def test_cors_origins_accept_csv_and_json():
    assert Settings(cors_origins="https://a.example, https://b.example").cors_origins == [
        "https://a.example",
        "https://b.example",
    ]
    assert Settings(cors_origins='["https://c.example"]').cors_origins == ["https://c.example"]


def test_cors_origins_fall_back_to_defaults():
    assert Settings(cors_origins="").cors_origins == DEFAULT_CORS_ORIGINS
    assert Settings(cors_origins=[" ", ""]).cors_origins == DEFAULT_CORS_ORIGINS


def test_external_attempts_never_below_one():
    assert Settings(external_max_attempts=0).external_max_attempts == 1
    assert Settings(external_max_attempts=5).external_max_attempts == 5


def test_tmdb_credentials_are_optional():
    settings = Settings(tmdb_api_key=None, tmdb_api_auth_header=None)

    assert settings.tmdb_region == "US"
    assert settings.tmdb_api_key is None
