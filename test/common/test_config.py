# Copyright 2013 IBM Corp.


import os
import shutil
import tempfile

import mock
import testtools

from vcompute.common import config
from vcompute.common.client import config as client_config
from vcompute.common.client.service import ProviderMetadata

CONF_TEXT = """
[session]
session_interval = 300
lease_renew_marker = lease expired

[trmk-test]
identity = jsmith
credential = qwerty
"""

METADATA = ProviderMetadata('trmk-test', 'Test vCloud', 'vcloud',
                            'http://127.0.0.1/api', '0.8a-ext1.6')


class ConfigTest(testtools.TestCase):

    def setUp(self):
        super(ConfigTest, self).setUp()
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.conf_file = os.path.join(self.tmpdir, 'vcompute.conf')
        with open(self.conf_file, 'w') as f:
            f.write(CONF_TEXT)

    def tearDown(self):
        super(ConfigTest, self).tearDown()
        if hasattr(config.parse_config, 'config_loaded'):
            del config.parse_config.config_loaded
        config.CONF.reset()

    def test_defaults(self):
        self.assertEqual(config.CONF.session.session_interval, 60)
        self.assertEqual(config.CONF.session.login_timeout, 10)
        self.assertEqual(config.CONF.session.versions_timeout, 180)
        self.assertEqual(config.CONF.session.lease_renew_marker,
                         'lease renew')
        self.assertEqual(config.CONF.http.max_retries, 5)

    def test_parse_config(self):
        p1 = mock.patch(
            'oslo_config.cfg.find_config_files',
            new=mock.MagicMock(return_value=[self.conf_file]))
        try:
            p1.start()
            config.parse_config([], "vcompute-test", None)
            config.register_provider_opts(METADATA)
            # value in file
            self.assertEqual(config.CONF.session.session_interval, 300)
            self.assertEqual(config.CONF['trmk-test'].identity, 'jsmith')
            # default value from the provider
            self.assertEqual(config.CONF['trmk-test'].api_version,
                             '0.8a-ext1.6')
        finally:
            p1.stop()

    def test_parse_config_only_once(self):
        p2 = mock.patch(
            'oslo_config.cfg.find_config_files',
            new=mock.MagicMock(return_value=[self.conf_file]))
        try:
            find = p2.start()
            config.parse_config([], "vcompute-test", None)
            config.parse_config([], "vcompute-test", None)
            self.assertEqual(find.call_count, 1)
        finally:
            p2.stop()

    def test_register_provider_opts_twice(self):
        config.register_provider_opts(METADATA)
        group = config.register_provider_opts(METADATA)
        self.assertEqual(group.endpoint, 'http://127.0.0.1/api')
        self.assertIsNone(group.login_endpoint)

    def test_build_provider_opts(self):
        opts = client_config.build_provider_opts(
            METADATA, {'identity': 'override', 'login_timeout': 3})
        self.assertEqual(opts['identity'], 'override')
        self.assertEqual(opts['login_timeout'], 3)
        self.assertEqual(opts['endpoint'], 'http://127.0.0.1/api')
        self.assertEqual(opts['session_interval'], 60)
        self.assertEqual(opts['auth_token_header'], 'X-Auth-Token')
        self.assertFalse(opts['green'])
