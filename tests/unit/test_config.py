"""
Metrics Gate - Configuration Unit Tests

Tests the Config class with:
- Environment variable loading
- AWS SSM Parameter Store integration (mocked)
- Type conversions (int, bool, Decimal)
- Default value handling
"""

import os
from decimal import Decimal
from unittest.mock import patch, MagicMock

import pytest

from utils.config import Config, ConfigurationError


def _ssm_with_parameter_not_found():
    """Mock SSM client whose exceptions.ParameterNotFound is a real exception class."""
    class ParameterNotFound(Exception):
        pass

    mock_ssm = MagicMock()
    mock_ssm.exceptions = MagicMock()
    mock_ssm.exceptions.ParameterNotFound = ParameterNotFound
    return mock_ssm


# ============================================================================
# Test Class: Config - Local Mode (Environment Variables)
# ============================================================================

class TestConfigLocalMode:
    """
    Test Config class in local development mode.

    Mode: ENVIRONMENT='local'
    Source: os.getenv() from .env file or system environment
    """

    def test_config_defaults_to_local_environment(self):
        """Config should default to 'local' environment if ENVIRONMENT not set."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
            assert config.environment == 'local'
            assert config.is_local is True
            assert config.is_production is False

    def test_get_returns_environment_variable_in_local_mode(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'APPLICATION_NAME': 'orders-api'}):
            assert Config().get('APPLICATION_NAME') == 'orders-api'

    def test_get_returns_default_when_key_not_found(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            assert Config().get('MISSING_KEY', 'default_value') == 'default_value'
            assert Config().get('MISSING_KEY') is None


# ============================================================================
# Test Class: Config - Production Mode (AWS SSM)
# ============================================================================

class TestConfigProductionMode:
    """
    Test Config class in production mode with AWS SSM Parameter Store.

    Mode: ENVIRONMENT='production'
    Source: AWS SSM Parameter Store (mocked)
    """

    @patch('boto3.client')
    def test_get_fetches_from_ssm_in_production_mode(self, mock_boto_client):
        """Config.get() should fetch from /metrics-gate/<KEY> in production mode."""
        mock_ssm = MagicMock()
        mock_ssm.get_parameter.return_value = {
            'Parameter': {'Value': 'prod-database.aws.com'}
        }
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}, clear=True):
            result = Config().get('DB_HOST')

        mock_boto_client.assert_called_once_with('ssm', region_name='us-east-1')
        mock_ssm.get_parameter.assert_called_once_with(
            Name='/metrics-gate/DB_HOST',
            WithDecryption=True
        )
        assert result == 'prod-database.aws.com'

    @patch('boto3.client')
    def test_get_uses_custom_ssm_prefix(self, mock_boto_client):
        mock_ssm = MagicMock()
        mock_ssm.get_parameter.return_value = {'Parameter': {'Value': 'x'}}
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production', 'AWS_SSM_PREFIX': '/custom/prefix'}):
            Config().get('DB_HOST')

        mock_ssm.get_parameter.assert_called_once_with(
            Name='/custom/prefix/DB_HOST',
            WithDecryption=True
        )

    @patch('boto3.client')
    def test_missing_parameter_without_default_raises(self, mock_boto_client):
        mock_ssm = _ssm_with_parameter_not_found()
        mock_ssm.get_parameter.side_effect = mock_ssm.exceptions.ParameterNotFound("missing")
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            with pytest.raises(ConfigurationError, match="not found in SSM"):
                Config().get('DB_HOST')

    @patch('boto3.client')
    def test_missing_parameter_with_default_returns_default(self, mock_boto_client):
        mock_ssm = _ssm_with_parameter_not_found()
        mock_ssm.get_parameter.side_effect = mock_ssm.exceptions.ParameterNotFound("missing")
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            assert Config().get('DB_HOST', 'localhost') == 'localhost'

    @patch('boto3.client')
    def test_ssm_failure_with_default_returns_default(self, mock_boto_client):
        mock_ssm = _ssm_with_parameter_not_found()
        mock_ssm.get_parameter.side_effect = RuntimeError("AccessDenied")
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            assert Config().get('LOG_LEVEL', 'INFO') == 'INFO'

    @patch('boto3.client')
    def test_ssm_failure_without_default_raises(self, mock_boto_client):
        mock_ssm = _ssm_with_parameter_not_found()
        mock_ssm.get_parameter.side_effect = RuntimeError("AccessDenied")
        mock_boto_client.return_value = mock_ssm

        with patch.dict(os.environ, {'ENVIRONMENT': 'production'}):
            with pytest.raises(ConfigurationError, match="RuntimeError"):
                Config().get('DB_HOST')


# ============================================================================
# Test Class: Type Conversions
# ============================================================================

class TestTypeConversions:

    def test_get_int(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'MESSAGE_IMMEDIATE_RETRIES': '3'}):
            assert Config().get_int('MESSAGE_IMMEDIATE_RETRIES', 0) == 3

    def test_get_int_invalid_falls_back_to_default(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'MESSAGE_IMMEDIATE_RETRIES': 'three'}):
            assert Config().get_int('MESSAGE_IMMEDIATE_RETRIES', 1) == 1

    def test_get_decimal(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'BATCH_SIZE_TOLERANCE': '0.25'}):
            assert Config().get_decimal('BATCH_SIZE_TOLERANCE', Decimal('0.1')) == Decimal('0.25')

    def test_get_decimal_invalid_falls_back_to_default(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'BATCH_SIZE_TOLERANCE': 'ten percent'}):
            assert Config().get_decimal('BATCH_SIZE_TOLERANCE', Decimal('0.1')) == Decimal('0.1')

    @pytest.mark.parametrize("raw,expected", [
        ('true', True), ('1', True), ('YES', True), ('on', True),
        ('false', False), ('0', False), ('nope', False),
    ])
    def test_get_bool(self, raw, expected):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local', 'FEATURE_FLAG': raw}):
            assert Config().get_bool('FEATURE_FLAG', False) is expected

    def test_get_bool_default(self):
        with patch.dict(os.environ, {'ENVIRONMENT': 'local'}, clear=True):
            assert Config().get_bool('FEATURE_FLAG', True) is True
