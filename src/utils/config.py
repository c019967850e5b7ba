"""
Metrics Gate - Configuration Management
Handles environment configuration with AWS SSM Parameter Store for production
and python-dotenv for local development.
"""

import os
from decimal import Decimal, InvalidOperation
from typing import Optional
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()


class Config:
    """
    Configuration manager with dual-mode operation:
    - Local: Reads from .env file via python-dotenv
    - Production: Reads from AWS SSM Parameter Store
    """

    def __init__(self):
        self.environment = os.getenv('ENVIRONMENT', 'local')
        self._ssm_client = None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration value from SSM (production) or environment (local).

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if self.environment == 'production':
            return self._get_from_ssm(key, default)
        else:
            return os.getenv(key, default)

    def _get_from_ssm(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Fetch configuration from AWS SSM Parameter Store.

        Args:
            key: Parameter key name
            default: Default value if parameter not found

        Returns:
            Parameter value or default

        Raises:
            ConfigurationError: If parameter not found and no default provided,
                               or if AWS credentials/permissions are invalid
        """
        if self._ssm_client is None:
            import boto3
            self._ssm_client = boto3.client(
                'ssm',
                region_name=os.getenv('AWS_REGION', 'us-east-1')
            )

        ssm_prefix = os.getenv('AWS_SSM_PREFIX', '/metrics-gate')
        parameter_name = f"{ssm_prefix}/{key}"
        try:
            response = self._ssm_client.get_parameter(
                Name=parameter_name,
                WithDecryption=True
            )
            return response['Parameter']['Value']

        except self._ssm_client.exceptions.ParameterNotFound:
            if default is not None:
                return default
            raise ConfigurationError(
                f"Required parameter '{key}' not found in SSM at path '{parameter_name}'. "
                f"Please create the parameter or provide a default value."
            )

        except Exception as e:
            # Credentials, permissions, network
            error_type = type(e).__name__
            if default is not None:
                import logging
                logging.warning(
                    f"Failed to fetch SSM parameter '{key}': {error_type}: {e}. "
                    f"Using default value."
                )
                return default
            raise ConfigurationError(
                f"Failed to fetch parameter '{key}' from SSM: {error_type}: {e}. "
                f"Check AWS credentials, IAM permissions, and network connectivity."
            )

    def get_int(self, key: str, default: int) -> int:
        """
        Get configuration value as integer.

        Args:
            key: Configuration key name
            default: Default value if key not found or conversion fails

        Returns:
            Integer value or default
        """
        value = self.get(key, str(default))
        try:
            return int(value)
        except (ValueError, TypeError) as e:
            import logging
            logging.warning(
                f"Invalid integer for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_decimal(self, key: str, default: Decimal) -> Decimal:
        """Get configuration value as Decimal, falling back to default on bad input."""
        value = self.get(key, str(default))
        try:
            return Decimal(value)
        except (InvalidOperation, TypeError) as e:
            import logging
            logging.warning(
                f"Invalid decimal for config key '{key}': '{value}'. "
                f"Using default={default}. Error: {e}"
            )
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        """
        Get configuration value as boolean.

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Boolean value or default
        """
        value = self.get(key, str(default))
        if value is None:
            return default
        return value.lower() in ('true', '1', 'yes', 'on')

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == 'production'

    @property
    def is_local(self) -> bool:
        """Check if running in local development environment."""
        return self.environment == 'local'


class ConfigurationError(Exception):
    """Raised when configuration cannot be loaded."""
    pass


# Global configuration instance
config = Config()


# Database configuration
# DATABASE_URL wins; otherwise a MySQL URL is built when DB_HOST is set
DATABASE_URL = config.get('DATABASE_URL', '')
DB_HOST = config.get('DB_HOST', '')
DB_PORT = config.get_int('DB_PORT', 3306)
DB_NAME = config.get('DB_NAME', 'metrics_gate')
DB_USER = config.get('DB_USER', 'root')
DB_PASSWORD = config.get('DB_PASSWORD', '')
SQLITE_PATH = config.get('SQLITE_PATH', 'metrics_gate.db')

# Logging configuration
LOG_LEVEL = config.get('LOG_LEVEL', 'INFO')

# Name written to every audit row produced by this process
APPLICATION_NAME = config.get('APPLICATION_NAME', 'metrics-gate')

# Messaging: immediate redeliveries of a failing handler before it is faulted
MESSAGE_IMMEDIATE_RETRIES = config.get_int('MESSAGE_IMMEDIATE_RETRIES', 0)

# HTTP gather settings
MAX_RETRY_ATTEMPTS = config.get_int('MAX_RETRY_ATTEMPTS', 3)
RETRY_BACKOFF_MULTIPLIER = config.get_int('RETRY_BACKOFF_MULTIPLIER', 2)
HTTP_TIMEOUT_SECONDS = config.get_int('HTTP_TIMEOUT_SECONDS', 10)

# Batch validation: allowed relative change in batch size (0.1 = 10%)
BATCH_SIZE_TOLERANCE = config.get_decimal('BATCH_SIZE_TOLERANCE', Decimal('0.1'))

# Database connection pool settings (MySQL only)
DB_POOL_SIZE = 10
DB_POOL_MAX_OVERFLOW = 20
DB_POOL_RECYCLE = 3600  # Recycle connections after 1 hour
DB_POOL_PRE_PING = True  # Health check connections before use
