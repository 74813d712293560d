"""Utility functions and constants for the AdGuard Home exporter."""

import argparse
import base64
import math
import re
from typing import Dict, Mapping, Optional, Tuple

from .models import ExporterConfig, MetricSample

NAMESPACE = 'adguardhome'

# Option name -> environment variable overriding its default
ENV_VARS = {
    'endpoint': 'ADGUARD_ENDPOINT',
    'username': 'ADGUARD_USERNAME',
    'password': 'ADGUARD_PASSWORD',
    'address': 'ADGUARD_ADDRESS',
    'path': 'ADGUARD_PATH',
    'timeout': 'ADGUARD_TIMEOUT',
    'verbose': 'ADGUARD_VERBOSE',
}

DEFAULTS = {
    'endpoint': '',
    'username': '',
    'password': '',
    'address': ':8000',
    'path': '/metrics',
    'timeout': '10',
    'verbose': False,
}

# "[::1]:8000", "127.0.0.1:8000", ":8000"
BIND_ADDRESS_PATTERN = r'^(?:\[(?P<v6>[0-9A-Fa-f:.%\w]+)\]|(?P<host>[^:\[\]]*)):(?P<port>\d+)$'

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def basic_auth_header(username: str, password: str) -> str:
    """Return the Authorization header value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return f"Basic {token}"


def parse_bind_address(address: str) -> Tuple[str, int]:
    """Split a bind address into host and port.

    An empty host (":8000") means every interface.
    """
    match = re.match(BIND_ADDRESS_PATTERN, address.strip())
    if not match:
        raise ValueError(f"invalid bind address '{address}' (expected host:port or :port)")

    port = int(match.group('port'))
    if port > 65535:
        raise ValueError(f"invalid port {port} in bind address '{address}'")

    host = match.group('v6') if match.group('v6') is not None else match.group('host')
    if not host:
        host = '0.0.0.0'
    return host, port


def parse_timeout(value: str) -> Optional[float]:
    """Parse a timeout in seconds; zero disables the deadline."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid timeout '{value}' (expected seconds)")
    if not math.isfinite(seconds):
        raise ValueError(f"invalid timeout '{value}' (must be a finite number of seconds)")
    if seconds < 0:
        raise ValueError(f"invalid timeout '{value}' (must not be negative)")
    return seconds or None


def resolve_config(args: argparse.Namespace, environ: Mapping[str, str]) -> ExporterConfig:
    """Resolve exporter settings: defaults, then environment, then explicit flags.

    Empty environment variables are ignored. Options left unset on the
    command line are expected to be None in ``args``.
    """
    values: Dict[str, object] = dict(DEFAULTS)

    for option, env_var in ENV_VARS.items():
        env_value = environ.get(env_var, '')
        if env_value != '':
            values[option] = env_value

    for option in ENV_VARS:
        flag_value = getattr(args, option, None)
        if flag_value is not None:
            values[option] = flag_value

    verbose = values['verbose']
    if isinstance(verbose, str):
        verbose = verbose.strip().lower() in TRUE_VALUES

    path = str(values['path'])
    if not path.startswith('/'):
        raise ValueError(f"invalid metrics path '{path}' (must start with '/')")

    address = str(values['address'])
    parse_bind_address(address)

    return ExporterConfig(
        endpoint=str(values['endpoint']),
        username=str(values['username']),
        password=str(values['password']),
        address=address,
        path=path,
        timeout=parse_timeout(str(values['timeout'])),
        verbose=bool(verbose),
    )


def escape_label_value(value: str) -> str:
    """Escape a label value as the text exposition format requires."""
    return value.replace('\\', r'\\').replace('\n', r'\n').replace('"', r'\"')


def format_sample(sample: MetricSample) -> str:
    """Format a sample the way it appears in the exposition output."""
    name = f"{NAMESPACE}_{sample.name}"
    if sample.labels:
        labels = ','.join(f'{key}="{escape_label_value(value)}"' for key, value in sample.labels.items())
        name = f"{name}{{{labels}}}"
    return f"{name} {sample.value}"
