"""
Configuration Manager for ISC DHCP Lease Inspector
Handles reading and validating application configuration
Field definitions come from a JSON schema file or the built-in DEFAULT_SCHEMA
"""

import os
import json
from typing import Dict, List, Any, Optional

DEFAULT_CONFIG_PATH = '/etc/isc-dhcp-lease-inspector/config.conf'

# Environment variable that overrides DEFAULT_CONFIG_PATH
CONFIG_PATH_ENV = 'LEASE_INSPECTOR_CONFIG'

# Environment variable naming a JSON schema file layered over DEFAULT_SCHEMA
SCHEMA_PATH_ENV = 'LEASE_INSPECTOR_SCHEMA'

DEFAULT_SCHEMA: Dict[str, Any] = {
    'required': ['DHCP_LEASES_PATH'],
    'properties': {
        'DHCP_LEASES_PATH': {
            'type': 'string',
            'format': 'path',
            'description': 'Path to the dhcpd.leases file'
        },
        'API_PREFIX': {
            'type': 'string',
            'default': '/api',
            'description': 'URL prefix for all API routes'
        },
        'CORS_ORIGINS': {
            'type': 'string',
            'default': '*',
            'description': 'Comma separated list of allowed CORS origins'
        },
        'LOG_LEVEL': {
            'type': 'string',
            'enum': ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
            'default': 'INFO',
            'description': 'Application log level'
        },
        'LOGGING_PATH': {
            'type': 'string',
            'format': 'path',
            'default': '/var/log/isc-dhcp-lease-inspector',
            'description': 'Directory for the rotating log file'
        },
        'FLASK_DEBUG': {
            'type': 'boolean',
            'default': 'false',
            'description': 'Run the Flask development server in debug mode'
        },
        'PORT': {
            'type': 'integer',
            'minimum': 1,
            'maximum': 65535,
            'default': '5000',
            'description': 'Port for the development server'
        }
    }
}


class ConfigManager:
    """Manages application configuration file"""

    def __init__(self, config_path: Optional[str] = None, schema_path: Optional[str] = None):
        if config_path is None:
            config_path = os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)

        if schema_path is None:
            schema_path = os.environ.get(SCHEMA_PATH_ENV)

        self.config_path = config_path
        self.schema_path = schema_path
        self.schema = self._load_schema()

    def _load_schema(self) -> Dict[str, Any]:
        """Load configuration schema from JSON file, or use the built-in one

        Properties from the file override or extend the built-in ones, and its
        required list replaces the built-in one when present.
        """
        if self.schema_path is None:
            return DEFAULT_SCHEMA

        try:
            with open(self.schema_path, 'r') as f:
                schema = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Schema file not found: {self.schema_path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid schema JSON: {e}")

        properties = dict(DEFAULT_SCHEMA['properties'])
        properties.update(schema.get('properties', {}))
        return {
            'required': schema.get('required', DEFAULT_SCHEMA['required']),
            'properties': properties
        }

    def read_config(self) -> Dict[str, str]:
        """Read configuration file and return as dictionary"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        config = {}

        try:
            with open(self.config_path, 'r') as f:
                for line in f:
                    line = line.strip()

                    # Skip empty lines and comments
                    if not line or line.startswith('#'):
                        continue

                    # Parse KEY=VALUE
                    if '=' in line:
                        key, value = line.split('=', 1)
                        key = key.strip()
                        value = value.strip()

                        if key:
                            config[key] = value

            return config

        except Exception as e:
            raise IOError(f"Failed to read config file: {str(e)}")

    def with_defaults(self, config: Dict[str, str]) -> Dict[str, str]:
        """Return config with schema defaults filled in for missing keys"""
        merged = {}
        for key, props in self.schema.get('properties', {}).items():
            if 'default' in props:
                merged[key] = props['default']
        merged.update(config)
        return merged

    def validate_config(self, config: Dict[str, str]) -> List[str]:
        """Validate configuration against schema, return list of errors"""
        errors = []
        properties = self.schema.get('properties', {})
        required = self.schema.get('required', [])

        for key in required:
            if key not in config or not config[key]:
                errors.append(f"{key} is required")

        for key, value in config.items():
            if key not in properties:
                # Unknown keys are ignored
                continue

            props = properties[key]
            field_type = props.get('type')

            if field_type == 'integer':
                try:
                    int_val = int(value)

                    if 'minimum' in props and int_val < props['minimum']:
                        errors.append(f"{key} must be at least {props['minimum']}")

                    if 'maximum' in props and int_val > props['maximum']:
                        errors.append(f"{key} must be at most {props['maximum']}")

                except ValueError:
                    errors.append(f"{key} must be an integer")

            elif field_type == 'boolean':
                if value.lower() not in ['true', 'false']:
                    errors.append(f"{key} must be 'true' or 'false'")

            elif field_type == 'string':
                if props.get('format') == 'path':
                    if not value.startswith('/'):
                        errors.append(f"{key} must be an absolute path (start with /)")

                if 'enum' in props:
                    if value not in props['enum']:
                        valid_values = ', '.join(props['enum'])
                        errors.append(f"{key} must be one of: {valid_values}")

        return errors
