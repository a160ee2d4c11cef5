import unittest

from aws_auth_payload.config import Settings
from aws_auth_payload.errors import ConfigError


class TestSettings(unittest.TestCase):

    def test_defaults(self) -> None:
        settings = Settings.from_environ({})

        self.assertEqual(settings.profile, 'default')
        self.assertTrue(settings.shared_credentials_file.endswith('credentials'))
        self.assertTrue(settings.config_file.endswith('config'))
        self.assertEqual(settings.metadata_timeout, 1.0)
        self.assertEqual(settings.metadata_attempts, 1)
        self.assertFalse(settings.metadata_disabled)

    def test_from_environ(self) -> None:
        settings = Settings.from_environ({
            'AWS_PROFILE': 'dev',
            'AWS_SHARED_CREDENTIALS_FILE': '/tmp/creds',
            'AWS_CONFIG_FILE': '/tmp/config',
            'AWS_METADATA_SERVICE_TIMEOUT': '2.5',
            'AWS_METADATA_SERVICE_NUM_ATTEMPTS': '3',
            'AWS_EC2_METADATA_DISABLED': 'TRUE',
        })

        self.assertEqual(settings, Settings(
            profile='dev',
            shared_credentials_file='/tmp/creds',
            config_file='/tmp/config',
            metadata_timeout=2.5,
            metadata_attempts=3,
            metadata_disabled=True,
        ))

    def test_malformed_numbers(self) -> None:
        for env in (
                {'AWS_METADATA_SERVICE_TIMEOUT': 'soon'},
                {'AWS_METADATA_SERVICE_TIMEOUT': '0'},
                {'AWS_METADATA_SERVICE_NUM_ATTEMPTS': '1.5'},
                {'AWS_METADATA_SERVICE_NUM_ATTEMPTS': '0'},
        ):
            with self.subTest(env=env):
                with self.assertRaises(ConfigError):
                    Settings.from_environ(env)


if __name__ == '__main__':
    unittest.main(verbosity=2)
