"""Tests for environment-driven settings."""

import logging
from pathlib import Path

from api.dependencies import ServiceContainer, erp_config_from_settings
from connectors.hgi.hgi_connector import HGIConnector
from core.config import Settings


ENV = {
    "PORT": "8080",
    "SHOPIFY_SECRET": "shh",
    "HGI_BASE_URL": "https://cloud2.hgi.com.co:9323",
    "HGI_USER": "api",
    "HGI_PASS": "secret",
    "HGI_COMPANY": "7",
    "HGI_EMPRESA": "3",
    "LOG_LEVEL": "debug",
    "LOG_JSON": "true",
}


class TestSettings:

    def test_from_env(self):
        settings = Settings.from_env(ENV)

        assert settings.port == 8080
        assert settings.hgi_base_url == "https://cloud2.hgi.com.co:9323/"
        assert settings.company_code == 3
        assert settings.hgi_comprobante == "FV"
        assert settings.hgi_cuenta_ingreso == "413505"
        assert settings.hgi_cuenta_cliente == "130505"
        assert settings.map_path == Path("map.json")
        assert settings.log_level_value == logging.DEBUG
        assert settings.log_json is True
        assert settings.missing() == []

    def test_defaults_and_missing(self):
        settings = Settings.from_env({})

        assert settings.port == 3000
        assert settings.hgi_base_url == ""
        assert settings.shopify_location_id is None
        assert not settings.shopify_configured
        assert settings.missing() == ["HGI_BASE_URL", "HGI_USER", "HGI_PASS", "HGI_COMPANY", "HGI_EMPRESA"]

    def test_trailing_slashes_collapse(self):
        settings = Settings.from_env({"HGI_BASE_URL": "https://hgi.example//"})
        assert settings.hgi_base_url == "https://hgi.example/"


class TestContainerWiring:

    def test_hgi_connector_built_from_settings(self):
        settings = Settings.from_env(ENV)
        config = erp_config_from_settings(settings)
        assert config.auth_config == {"user": "api", "password": "secret", "company": "7"}

        container = ServiceContainer.from_settings(settings)
        assert isinstance(container.connector, HGIConnector)
        assert container.commerce is None
        assert container.poller is None

    def test_poller_needs_shopify_admin_credentials(self):
        env = dict(ENV, SHOPIFY_SHOP_DOMAIN="shop.myshopify.com", SHOPIFY_ACCESS_TOKEN="shpat_x")
        container = ServiceContainer.from_settings(Settings.from_env(env))
        assert container.commerce is not None
        assert container.poller is not None
        assert container.poller.interval == 300


class TestInvalidSettings:

    def test_non_numeric_empresa(self):
        settings = Settings.from_env(dict(ENV, HGI_EMPRESA="ACME"))
        assert settings.missing() == []
        assert settings.invalid() == ["HGI_EMPRESA"]

    def test_valid_and_empty_empresa(self):
        assert Settings.from_env(ENV).invalid() == []
        assert Settings.from_env({}).invalid() == []
