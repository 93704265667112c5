"""
Tests for Stubdeck Command Surface

Tests the transport-independent commands including:
- Endpoint CRUD and input validation
- Server start/stop/status through AppState
- TLS commands
- Network interface listing
- Project save/load with file dialog collaborators
- The invoke dispatcher
"""

import json
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

from stubdeck.commands import COMMAND_NAMES, CommandResponse, Commands
from stubdeck.common.config import AppConfig
from stubdeck.errors import NotRunningError, TlsNotConfiguredError, ValidationError
from stubdeck.models import ProjectData, ServerSettings, TlsConfig
from stubdeck.state import AppState


@pytest.fixture
def state(tmp_path):
    """AppState isolated to a temp dir, without exit hooks."""
    config = AppConfig(temp_dir=str(tmp_path / 'certs'), cleanup_on_exit=False, restart_grace_ms=100)
    state = AppState(config)
    yield state
    state.shutdown()


@pytest.fixture
def dialogs(tmp_path):
    """File dialog collaborator returning paths in tmp_path."""
    return Mock(
        pick_file=Mock(return_value=str(tmp_path / 'project.json')),
        save_file=Mock(side_effect=lambda name: str(tmp_path / name))
    )


@pytest.fixture
def commands(state, dialogs):
    interfaces = Mock(list_local_addresses=Mock(return_value=[('lo', '127.0.0.1'), ('eth0', '10.0.0.5')]))
    return Commands(state, dialogs=dialogs, interfaces=interfaces)


class TestEndpointCommands:
    """Test endpoint commands."""

    def test_add_and_get(self, commands):
        """Test added endpoints are listed in order."""
        commands.add_endpoint('GET', '/a', '1')
        commands.add_endpoint('POST', '/b', '2', status=201, delay=10)

        endpoints = commands.get_endpoints()
        assert [(e.method, e.path, e.status, e.delay) for e in endpoints] == [
            ('GET', '/a', 200, 0),
            ('POST', '/b', 201, 10),
        ]

    def test_delete(self, commands):
        """Test deleting by id."""
        ep = commands.add_endpoint('GET', '/a', '1')
        commands.delete_endpoint(ep.id)

        assert commands.get_endpoints() == []

    def test_delete_unknown(self, commands):
        """Test deleting an unknown id is a silent no-op."""
        commands.add_endpoint('GET', '/a', '1')
        commands.delete_endpoint('nope')

        assert len(commands.get_endpoints()) == 1

    @pytest.mark.parametrize('kwargs', [
        {'method': '', 'path': '/a', 'response': ''},
        {'method': 'GET', 'path': 5, 'response': ''},
        {'method': 'GET', 'path': '/a', 'response': None},
        {'method': 'GET', 'path': '/a', 'response': '', 'status': 42},
        {'method': 'GET', 'path': '/a', 'response': '', 'status': 101},
        {'method': 'GET', 'path': '/a', 'response': '', 'status': 600},
        {'method': 'GET', 'path': '/a', 'response': '', 'status': '200'},
        {'method': 'GET', 'path': '/a', 'response': '', 'delay': -1},
    ])
    def test_add_validation(self, commands, kwargs):
        """Test malformed add payloads raise ValidationError."""
        with pytest.raises(ValidationError):
            commands.add_endpoint(**kwargs)


class TestServerCommands:
    """Test server commands."""

    def test_start_status_stop(self, commands):
        """Test the full start/status/stop cycle."""
        commands.add_endpoint('GET', '/health', '{"ok":true}')

        message = commands.start_server(0, '127.0.0.1', False)
        status = commands.get_server_status()

        assert message.startswith('Server started on http://127.0.0.1:')
        assert status.running is True
        assert httpx.get(f"http://127.0.0.1:{status.port}/health").text == '{"ok":true}'

        assert commands.stop_server() == 'Server stopped'
        assert commands.get_server_status().running is False

    def test_start_records_settings(self, commands, state):
        """Test a successful start updates the live settings."""
        commands.start_server(0, '127.0.0.1', False)

        assert state.settings.get() == ServerSettings(port=0, bind_addr='127.0.0.1', enable_tls=False)

    def test_failed_start_keeps_settings(self, commands, state):
        """Test a failed start leaves settings untouched."""
        before = state.settings.get()

        with pytest.raises(TlsNotConfiguredError):
            commands.start_server(0, '127.0.0.1', True)

        assert state.settings.get() == before

    def test_stop_when_idle(self, commands):
        """Test stop without a running server."""
        with pytest.raises(NotRunningError):
            commands.stop_server()

    @pytest.mark.parametrize('port', [-1, 70000, '3000', True])
    def test_invalid_port(self, commands, port):
        """Test out-of-range or mistyped ports are rejected."""
        with pytest.raises(ValidationError):
            commands.start_server(port, '127.0.0.1', False)


class TestTlsCommands:
    """Test TLS commands."""

    def test_set_get_clear(self, commands):
        """Test TLS config lifecycle messages and values."""
        assert commands.set_tls_config('/c.pem', '/k.pem') == 'TLS configuration saved'
        assert commands.get_tls_config() == TlsConfig('/c.pem', '/k.pem')
        assert commands.clear_tls_config() == 'TLS configuration cleared'
        assert commands.get_tls_config() is None

    def test_generate_and_cleanup(self, commands):
        """Test temp certificate generation and cleanup."""
        config = commands.generate_temp_certificate()
        assert Path(config.cert_path).exists()
        assert commands.get_tls_config() == config

        commands.cleanup_temp_certificates()

        assert not Path(config.cert_path).exists()
        assert not Path(config.key_path).exists()
        # Cleanup alone keeps the pointer
        assert commands.get_tls_config() == config

    def test_https_server(self, commands):
        """Test starting HTTPS with a generated certificate."""
        commands.add_endpoint('GET', '/secure', '"yes"')
        commands.generate_temp_certificate()

        commands.start_server(0, '127.0.0.1', True)
        status = commands.get_server_status()

        assert status.is_tls is True
        response = httpx.get(f"https://127.0.0.1:{status.port}/secure", verify=False)
        assert response.text == '"yes"'


class TestNetworkInterfaces:
    """Test interface listing."""

    def test_uses_collaborator(self, commands):
        """Test addresses come from the injected provider."""
        assert commands.get_network_interfaces() == [
            {'name': 'lo', 'ip': '127.0.0.1'},
            {'name': 'eth0', 'ip': '10.0.0.5'},
        ]

    def test_default_provider(self, state):
        """Test the default provider always offers loopback."""
        interfaces = Commands(state).get_network_interfaces()
        assert {'name': 'localhost', 'ip': '127.0.0.1'} in interfaces


class TestProjectCommands:
    """Test project save/load."""

    def test_save_project(self, commands, dialogs, tmp_path):
        """Test save asks the dialog and writes the file."""
        commands.add_endpoint('GET', '/a', '1')
        data = commands.export_project('Demo')

        path = commands.save_project(data, 'demo.json')

        dialogs.save_file.assert_called_once_with('demo.json')
        assert path == str(tmp_path / 'demo.json')
        saved = json.loads(Path(path).read_text(encoding='utf-8'))
        assert saved['name'] == 'Demo'
        assert saved['endpoints'][0]['path'] == '/a'

    def test_save_accepts_dict(self, commands, tmp_path):
        """Test save accepts the raw document form."""
        doc = commands.export_project('Raw').to_dict()

        path = commands.save_project(doc, 'raw.json')

        assert Path(path).exists()

    def test_save_cancelled(self, commands, dialogs):
        """Test a cancelled save dialog returns None."""
        dialogs.save_file.side_effect = None
        dialogs.save_file.return_value = None

        assert commands.save_project(ProjectData(name='x'), 'x.json') is None

    def test_load_project(self, commands, tmp_path):
        """Test load parses but does not apply the project."""
        commands.add_endpoint('GET', '/a', '1')
        commands.save_project(commands.export_project('Saved'), 'project.json')
        commands.delete_endpoint(commands.get_endpoints()[0].id)

        data = commands.load_project()

        assert data.name == 'Saved'
        assert [e.path for e in data.endpoints] == ['/a']
        assert commands.get_endpoints() == []

    def test_load_cancelled(self, commands, dialogs):
        """Test a cancelled pick returns None."""
        dialogs.pick_file.return_value = None
        assert commands.load_project() is None

    def test_set_project_state(self, commands, state):
        """Test applying project data replaces live state."""
        commands.add_endpoint('GET', '/old', '1')
        project = ProjectData(
            name='New',
            settings=ServerSettings(port=9000, bind_addr='0.0.0.0', enable_tls=True),
            tls_config=TlsConfig('/c', '/k')
        )

        commands.set_project_state(project)

        assert commands.get_endpoints() == []
        assert commands.get_tls_config() == TlsConfig('/c', '/k')
        assert state.settings.get().port == 9000

    def test_no_dialogs(self, state):
        """Test save/load without a dialog collaborator."""
        commands = Commands(state)

        with pytest.raises(ValidationError):
            commands.load_project()
        with pytest.raises(ValidationError):
            commands.save_project(ProjectData(name='x'), 'x.json')


class TestInvoke:
    """Test the dispatcher."""

    def test_success_payload(self, commands):
        """Test results are converted to plain structures."""
        response = commands.invoke('add_endpoint', {'method': 'GET', 'path': '/a', 'response': '1'})

        assert response.ok is True
        assert response.result['path'] == '/a'
        assert response.result['status'] == 200

    def test_list_payload(self, commands):
        """Test list results are converted element-wise."""
        commands.add_endpoint('GET', '/a', '1')

        response = commands.invoke('get_endpoints')

        assert isinstance(response.result, list)
        assert response.result[0]['method'] == 'GET'

    def test_error_string(self, commands):
        """Test failures come back as error strings."""
        response = commands.invoke('stop_server')

        assert response == CommandResponse(ok=False, error='Server is not running')
        assert response.to_dict() == {'ok': False, 'error': 'Server is not running'}

    def test_status_payload(self, commands):
        """Test idle status payload."""
        assert commands.invoke('get_server_status').result == {'running': False}

    def test_unknown_command(self, commands):
        """Test unknown command names are reported, not raised."""
        response = commands.invoke('format_disk')

        assert response.ok is False
        assert 'Unknown command' in response.error

    def test_bad_arguments(self, commands):
        """Test missing payload keys are reported."""
        response = commands.invoke('add_endpoint', {'method': 'GET'})

        assert response.ok is False
        assert 'Invalid arguments' in response.error

    def test_tls_not_configured_message(self, commands):
        """Test TLS start failure message."""
        response = commands.invoke('start_server', {'port': 0, 'bind_addr': '127.0.0.1', 'enable_tls': True})

        assert response.error == 'TLS is enabled but no certificate configured'

    def test_all_commands_exist(self, commands):
        """Test every advertised command is a method."""
        for name in COMMAND_NAMES:
            assert callable(getattr(commands, name))

    def test_nul_in_bind_address(self, commands):
        """Test a bind address with a NUL character comes back as an error string."""
        response = commands.invoke('start_server', {'port': 0, 'bind_addr': 'x\x00y', 'enable_tls': False})

        assert response.ok is False
        assert response.error.startswith('Failed to bind to')
        assert commands.get_server_status().running is False

    def test_informational_status_rejected_while_serving(self, commands):
        """Test a 1xx status never reaches a running listener."""
        commands.add_endpoint('GET', '/health', '{"ok":true}')
        commands.start_server(0, '127.0.0.1', False)
        port = commands.get_server_status().port

        response = commands.invoke('add_endpoint', {'method': 'GET', 'path': '/info', 'response': 'x', 'status': 101})

        assert response.ok is False
        assert 'status' in response.error
        missing = httpx.get(f"http://127.0.0.1:{port}/info")
        assert missing.status_code == 404
        assert httpx.get(f"http://127.0.0.1:{port}/health").status_code == 200
