"""
Tests for Stubdeck State, Models and Network Helpers
"""

import uuid
from pathlib import Path
from unittest.mock import patch

from stubdeck.common.config import AppConfig
from stubdeck.common.network import LocalAddressProvider
from stubdeck.models import Endpoint, ServerSettings, ServerStatus, new_endpoint_id
from stubdeck.state import AppState, SettingsStore


class TestSettingsStore:
    """Test the settings holder."""

    def test_get_returns_copy(self):
        """Test mutating a returned value does not change the store."""
        store = SettingsStore()
        settings = store.get()
        settings.port = 1

        assert store.get().port == 3000

    def test_set_copies(self):
        """Test later mutation of the argument is not observed."""
        store = SettingsStore()
        settings = ServerSettings(port=8080)
        store.set(settings)
        settings.port = 9

        assert store.get().port == 8080


class TestAppState:
    """Test AppState wiring and shutdown."""

    def test_seeded_from_config(self, tmp_path):
        """Test settings and temp dir come from the config."""
        state = AppState(AppConfig(
            default_port=4000, default_bind_addr='0.0.0.0',
            temp_dir=str(tmp_path), cleanup_on_exit=False
        ))

        assert state.settings.get() == ServerSettings(port=4000, bind_addr='0.0.0.0', enable_tls=False)
        assert state.tls.temp_dir == Path(tmp_path)

    def test_shutdown_stops_and_cleans(self, tmp_path):
        """Test shutdown stops the listener and removes temp certificates."""
        state = AppState(AppConfig(temp_dir=str(tmp_path), cleanup_on_exit=False))
        config = state.tls.generate_ephemeral()
        state.lifecycle.start(0, '127.0.0.1')

        state.shutdown()

        assert state.lifecycle.is_running is False
        assert not Path(config.cert_path).exists()

    def test_shutdown_when_idle(self, tmp_path):
        """Test shutdown without a listener is harmless."""
        state = AppState(AppConfig(temp_dir=str(tmp_path), cleanup_on_exit=False))
        state.shutdown()
        state.shutdown()

    def test_exit_hook_registered(self, tmp_path):
        """Test cleanup_on_exit registers the shutdown hook."""
        with patch('stubdeck.state.atexit.register') as register:
            state = AppState(AppConfig(temp_dir=str(tmp_path)))

        register.assert_called_once_with(state.shutdown)


class TestModels:
    """Test small model behaviors."""

    def test_ids_are_uuids(self):
        """Test generated ids are UUID strings."""
        assert uuid.UUID(new_endpoint_id())
        assert new_endpoint_id() != new_endpoint_id()

    def test_endpoint_dict(self):
        """Test endpoint dictionary form."""
        ep = Endpoint(id='x', method='GET', path='/a', response='{}')
        assert Endpoint.from_dict(ep.to_dict()) == ep

    def test_running_status_dict(self):
        """Test status payload keys while running."""
        status = ServerStatus(running=True, port=3000, is_tls=False, bind_addr='127.0.0.1')

        assert status.to_dict() == {
            'running': True, 'port': 3000, 'is_tls': False, 'bind_addr': '127.0.0.1'
        }


class TestLocalAddressProvider:
    """Test the default interface provider."""

    def test_includes_loopback_and_wildcard(self):
        """Test loopback and wildcard are always offered."""
        with patch('stubdeck.common.network.get_lan_ip', return_value=None):
            addresses = LocalAddressProvider().list_local_addresses()

        assert addresses == [('localhost', '127.0.0.1'), ('all interfaces', '0.0.0.0')]

    def test_includes_lan(self):
        """Test a discovered LAN address is appended."""
        with patch('stubdeck.common.network.get_lan_ip', return_value='192.168.1.20'):
            addresses = LocalAddressProvider().list_local_addresses()

        assert addresses[-1] == ('lan', '192.168.1.20')
