"""Environment configuration loader and validator"""

import os
import socket
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values
from rich.table import Table

from .console import get_console

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULTS = {
    # Table source
    'BATMON_COMMAND': 'batctl o',
    'BATMON_COMMAND_TIMEOUT': '30',
    'BATMON_INTERVAL': '10',
    'BATMON_HOSTNAME': '',

    # Stability tracker
    'BATMON_INITIAL_CAPACITY': '16',
    'BATMON_MAX_NODES': '0',

    # Output
    'BATMON_OUTPUT_FORMAT': 'table',
    'BATMON_PROMETHEUS_PORT': '0',

    # Logging
    'LOG_LEVEL': 'INFO',
    'BATMON_LOG_FILE': '',
}

OUTPUT_FORMATS = ('table', 'json', 'log')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def find_env_file() -> Optional[Path]:
    """Find the .env file in standard locations"""
    search_paths = [
        Path.cwd() / '.env',
        Path('/etc/batmon/batmon.env'),
        Path.home() / '.config' / 'batmon' / 'batmon.env',
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def load_env_file(env_path: Optional[Path] = None, override: bool = False) -> Dict[str, str]:
    """Load environment variables from a .env file

    Args:
        env_path: Optional path to .env file. If None, auto-discovers.
        override: Replace variables already set in the environment

    Returns:
        Dictionary of variables read from the file
    """
    if env_path is None:
        env_path = find_env_file()

    if env_path is None or not Path(env_path).exists():
        return {}

    loaded = {k: v for k, v in dotenv_values(env_path).items() if v is not None}
    for key, value in loaded.items():
        if override or key not in os.environ:
            os.environ[key] = value

    logger.debug(f"Loaded {len(loaded)} settings from {env_path}")
    return loaded


def get_config(key: str, default: Optional[str] = None) -> str:
    """Get configuration value from environment or defaults

    Priority:
    1. Environment variable
    2. Provided default
    3. Built-in default
    """
    value = os.environ.get(key)
    if value is not None:
        return value
    if default is not None:
        return default
    return DEFAULTS.get(key, '')


def get_config_int(key: str, default: int = 0) -> int:
    """Get integer configuration value"""
    try:
        return int(get_config(key, str(default)))
    except ValueError:
        logger.warning(f"{key} is not an integer, using {default}")
        return default


def get_config_float(key: str, default: float = 0.0) -> float:
    """Get float configuration value"""
    try:
        return float(get_config(key, str(default)))
    except ValueError:
        logger.warning(f"{key} is not a number, using {default}")
        return default


def get_hostname() -> str:
    """Host tag for dispatched metrics"""
    return get_config('BATMON_HOSTNAME') or socket.gethostname()


def validate_config() -> Dict[str, Any]:
    """Validate current configuration and return status

    Returns:
        Dictionary with validation results
    """
    results = {
        'valid': True,
        'warnings': [],
        'errors': [],
        'config': {}
    }

    command = get_config('BATMON_COMMAND').strip()
    if not command:
        results['errors'].append("BATMON_COMMAND is empty")
        results['valid'] = False
    results['config']['command'] = command

    interval = get_config_float('BATMON_INTERVAL', 10.0)
    if interval <= 0:
        results['errors'].append(f"BATMON_INTERVAL must be positive: {interval}")
        results['valid'] = False
    elif interval < 1:
        results['warnings'].append(f"Very short sampling interval: {interval}s")
    results['config']['interval'] = interval

    capacity = get_config_int('BATMON_INITIAL_CAPACITY', 16)
    if capacity < 1:
        results['errors'].append(f"BATMON_INITIAL_CAPACITY must be positive: {capacity}")
        results['valid'] = False
    results['config']['initial_capacity'] = capacity

    max_nodes = get_config_int('BATMON_MAX_NODES', 0)
    if max_nodes < 0:
        results['errors'].append(f"BATMON_MAX_NODES must not be negative: {max_nodes}")
        results['valid'] = False
    results['config']['max_nodes'] = max_nodes

    port = get_config_int('BATMON_PROMETHEUS_PORT', 0)
    if not 0 <= port <= 65535:
        results['errors'].append(f"Invalid BATMON_PROMETHEUS_PORT: {port}")
        results['valid'] = False
    results['config']['prometheus_port'] = port

    output_format = get_config('BATMON_OUTPUT_FORMAT').lower()
    if output_format not in OUTPUT_FORMATS:
        results['warnings'].append(f"Unknown output format '{output_format}', using table")
        output_format = 'table'
    results['config']['output_format'] = output_format

    log_level = get_config('LOG_LEVEL').upper()
    if log_level not in LOG_LEVELS:
        results['errors'].append(f"Invalid LOG_LEVEL: {log_level}")
        results['valid'] = False
    results['config']['log_level'] = log_level

    results['config']['log_file'] = get_config('BATMON_LOG_FILE')
    results['config']['hostname'] = get_hostname()

    return results


def show_config_summary():
    """Display current configuration summary"""
    console = get_console()
    table = Table(title="batmon Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    env_file = find_env_file()

    for key in sorted(DEFAULTS.keys()):
        env_value = os.environ.get(key)
        if env_value is not None:
            value, source = env_value, "env"
        else:
            value, source = DEFAULTS[key], "default"
        table.add_row(key, value or "-", source)

    console.print(table)

    if env_file:
        console.print(f"\n[dim]Loaded from: {env_file}[/dim]")
    else:
        console.print("\n[dim]No .env file found, using defaults[/dim]")


def initialize_config(env_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the .env file and validate the result

    Call this at application startup
    """
    load_env_file(env_path)
    return validate_config()
