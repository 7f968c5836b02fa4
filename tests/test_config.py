"""Tests for environment-driven settings"""
from storefront.config import DEFAULT_CATALOG_API_URL, Settings


def test_defaults():
    settings = Settings.from_env({})

    assert settings.catalog_api_url == DEFAULT_CATALOG_API_URL
    assert settings.catalog_timeout is None
    assert settings.catalog_fetch_attempts == 1
    assert settings.catalog_discard_stale_details is False
    assert settings.cart_storage_backend == "file"
    assert settings.cart_storage_path.endswith("storage.json")
    assert settings.cart_storage_key == "cartState"
    assert settings.cart_ttl_seconds is None
    assert settings.page_size == 8


def test_values_from_env():
    settings = Settings.from_env({
        "CATALOG_API_URL": "https://shop.test/api/",
        "CATALOG_TIMEOUT": "3.5",
        "CATALOG_FETCH_ATTEMPTS": "3",
        "CATALOG_DISCARD_STALE_DETAILS": "true",
        "CART_STORAGE_BACKEND": "Redis",
        "CART_STORAGE_KEY": "cart",
        "CART_TTL_SECONDS": "86400",
        "UPSTASH_REDIS_REST_URL": "https://redis.test",
        "UPSTASH_REDIS_REST_TOKEN": "token",
        "PAGE_SIZE": "12",
    })

    assert settings.catalog_api_url == "https://shop.test/api"
    assert settings.catalog_timeout == 3.5
    assert settings.catalog_fetch_attempts == 3
    assert settings.catalog_discard_stale_details is True
    assert settings.cart_storage_backend == "redis"
    assert settings.cart_storage_key == "cart"
    assert settings.cart_ttl_seconds == 86400
    assert settings.redis_token == "token"
    assert settings.page_size == 12


def test_invalid_values_fall_back_to_defaults():
    settings = Settings.from_env({
        "CATALOG_TIMEOUT": "soon",
        "CATALOG_FETCH_ATTEMPTS": "0",
        "CART_STORAGE_BACKEND": "floppy",
        "PAGE_SIZE": "eight",
        "CART_TTL_SECONDS": "-5",
    })

    assert settings.catalog_timeout is None
    assert settings.catalog_fetch_attempts == 1
    assert settings.cart_storage_backend == "file"
    assert settings.page_size == 8
    assert settings.cart_ttl_seconds is None
