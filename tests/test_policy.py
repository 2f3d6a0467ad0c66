"""
Port/TLS policy tests
"""

import pytest

from binding_validator.bindings.policy import Endpoint, default_port, resolve_endpoint
from binding_validator.models.credentials import ServiceCredentials
from binding_validator.models.enums import BackendKind


class TestUserProvidedPolicy:

    def test_gateway_port_only(self):
        creds = ServiceCredentials(service_gateway_access_port=15000, user_provided=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(15000, False)

    def test_gateway_port_beats_plain_and_tls_port(self):
        creds = ServiceCredentials(
            port=6379, tls_port=6380, tls_enabled=True, service_gateway_access_port=15000, user_provided=True
        )
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(15000, False)

    def test_plain_port_beats_tls_port(self):
        creds = ServiceCredentials(port=6379, tls_port=6380, tls_enabled=True, user_provided=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6379, False)

    def test_tls_port_as_last_resort(self):
        creds = ServiceCredentials(tls_port=6380, tls_enabled=True, user_provided=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6380, True)


class TestPlatformPolicy:

    def test_tls_port_only(self):
        creds = ServiceCredentials(tls_port=6380, tls_enabled=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6380, True)

    def test_plain_port_with_tls_flag(self):
        creds = ServiceCredentials(port=6379, tls_enabled=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6379, True)

    def test_plain_port_without_tls(self):
        creds = ServiceCredentials(port=6379)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6379, False)

    def test_tls_port_preferred_when_tls_enabled(self):
        creds = ServiceCredentials(port=6379, tls_port=6380, tls_enabled=True)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE) == Endpoint(6380, True)

    def test_explicit_flag_overrides_record_style(self):
        creds = ServiceCredentials(port=6379, service_gateway_access_port=15000)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE, is_user_provided=True) == Endpoint(15000, False)
        assert resolve_endpoint(creds, BackendKind.KEYVALUE, is_user_provided=False) == Endpoint(6379, False)


class TestDefaults:

    @pytest.mark.parametrize("kind,port", [
        (BackendKind.MYSQL, 3306),
        (BackendKind.POSTGRESQL, 5432),
        (BackendKind.KEYVALUE, 6379),
        (BackendKind.BROKER, 5672),
        ("keyvalue", 6379),
    ])
    def test_default_port(self, kind, port):
        assert default_port(kind) == port

    @pytest.mark.parametrize("user_provided", [True, False])
    def test_no_signal_uses_default_without_tls(self, user_provided):
        creds = ServiceCredentials(user_provided=user_provided)
        assert resolve_endpoint(creds, BackendKind.BROKER) == Endpoint(5672, False)

    @pytest.mark.parametrize("kind", [BackendKind.UNCLASSIFIED, "elasticsearch"])
    def test_unknown_kind_has_no_default(self, kind):
        with pytest.raises(ValueError):
            default_port(kind)
