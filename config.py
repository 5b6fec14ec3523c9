# config.py


class Config:
    DEBUG = False
    TESTING = False

    # Fallback for when config.json has no write_offs section
    WRITE_OFFS_DEFAULTS = {
        "utc_offset_hours": 3,
        "ignored_tabs": [],
        "unit_directory": {"timeout": 10},
        "event_sink": {"timeout": 10},
    }


class ProductionConfig(Config):
    pass


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    DEBUG = True
