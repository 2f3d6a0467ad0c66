"""
Shared fixtures for the Service Binding Validator test suite
"""

import pytest

from binding_validator.models.credentials import ServiceCredentials


@pytest.fixture
def redis_credentials():
    return ServiceCredentials(
        service_name="cache-1",
        label="redis",
        host="redis.example.com",
        port=6379,
        password="secret",
    )


@pytest.fixture
def postgres_credentials():
    return ServiceCredentials(
        service_name="orders-postgres",
        label="postgresql",
        host="pg.example.com",
        port=5432,
        database="orders",
        username="app",
        password="secret",
    )


@pytest.fixture
def mysql_credentials():
    return ServiceCredentials(
        service_name="my-mysql-db",
        label="p.mysql",
        host="mysql.example.com",
        port=3306,
        database="service_instance_db",
        username="app",
        password="secret",
    )


@pytest.fixture
def rabbitmq_credentials():
    return ServiceCredentials(
        service_name="events-rabbit",
        label="p.rabbitmq",
        host="rabbit.example.com",
        port=5672,
        username="app",
        password="secret",
        virtual_host="/prod",
    )
