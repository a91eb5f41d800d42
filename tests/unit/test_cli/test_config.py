# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Unit Tests for CLI Configuration Loading

Tests YAML/JSON configuration file loading, merging, and two-phase parsing.
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

import yaml

from fakes.fake_logger import FakeLogger
from fakes.fake_os import FakeOs
from imageprep.backup.models import BackupConfig
from imageprep.sanitize.orchestrator import Sanitizer
from imageprep.cli.args import parse_args_with_config
from imageprep.cli.sanitize_cmd import build_sanitize_parser
from imageprep.config.config_loader import ENV_CONFIG, Config
from imageprep.core.exceptions import ConfigError
from imageprep.sanitize.models import METADATA_SINK, SanitizeConfig


class _ConfigDirCase(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.td = Path(self._td.name)
        self.logger = Mock()
        env = patch.dict(os.environ)
        env.start()
        os.environ.pop(ENV_CONFIG, None)
        self.addCleanup(env.stop)

    def tearDown(self):
        self._td.cleanup()

    def write(self, name, data):
        p = self.td / name
        if name.endswith(".json"):
            p.write_text(json.dumps(data), encoding="utf-8")
        else:
            p.write_text(yaml.safe_dump(data), encoding="utf-8")
        return p


class TestConfigFiles(_ConfigDirCase):
    def test_yaml_and_json_merge_in_order(self):
        a = self.write("a.yaml", {"sanitize": {"sink_path": "a.exe", "cleanmgr_path": "clean.exe"}})
        b = self.write("b.json", {"sanitize": {"sink_path": "b.exe"}})

        conf = Config.load_many(self.logger, [a, b])

        self.assertEqual(conf["sanitize"], {"sink_path": "b.exe", "cleanmgr_path": "clean.exe"})

    def test_env_config_loaded_first(self):
        env_cfg = self.write("env.yaml", {"backup": {"remote_suffix": "env"}})
        cli_cfg = self.write("cli.yaml", {"backup": {"remote_suffix": "cli"}})
        os.environ[ENV_CONFIG] = str(env_cfg)

        paths = Config.expand_configs(self.logger, [str(cli_cfg)])

        self.assertEqual(paths, [env_cfg, cli_cfg])
        self.assertEqual(Config.backup(Config.load_many(self.logger, paths)).remote_suffix, "cli")

    def test_missing_file(self):
        with self.assertRaises(ConfigError) as cm:
            Config.expand_configs(self.logger, [str(self.td / "nope.yaml")])
        self.assertEqual(cm.exception.code, 2)

    def test_unknown_section(self):
        p = self.write("bad.yaml", {"sanitise": {}})
        with self.assertRaises(ConfigError):
            Config.load_file(self.logger, p)

    def test_not_a_mapping(self):
        p = self.td / "list.yaml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with self.assertRaises(ConfigError):
            Config.load_file(self.logger, p)

    def test_unparsable(self):
        p = self.td / "broken.json"
        p.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ConfigError):
            Config.load_file(self.logger, p)

    def test_empty_file(self):
        p = self.td / "empty.yaml"
        p.write_text("", encoding="utf-8")
        self.assertEqual(Config.load_file(self.logger, p), {})


class TestConfigSections(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(Config.sanitize({}), SanitizeConfig())
        self.assertEqual(Config.backup({}), BackupConfig())

    def test_lists_become_tuples(self):
        cfg = Config.sanitize({"sanitize": {"cleanup_globs": ["C:\\a\\*", "C:\\b\\*"]}})
        self.assertEqual(cfg.cleanup_globs, ("C:\\a\\*", "C:\\b\\*"))

    def test_single_string_is_one_item(self):
        cfg = Config.sanitize({"sanitize": {"cleanup_globs": "C:\\Windows\\Temp\\*"}})
        self.assertEqual(cfg.cleanup_globs, ("C:\\Windows\\Temp\\*",))

        bk = Config.backup({"backup": {"local_dirs": "/data/imgapi/images", "sync_cmd": "rsync"}})
        self.assertEqual(bk.local_dirs, ("/data/imgapi/images",))
        self.assertEqual(bk.sync_cmd, ("rsync",))

    def test_single_glob_from_yaml_never_splits(self):
        conf = yaml.safe_load("sanitize:\n  cleanup_globs: 'C:\\Windows\\Temp\\*'\n")
        fake = FakeOs({"A": 0})

        Sanitizer(FakeLogger(), fake, lambda k, v: None, Config.sanitize(conf)).run()

        self.assertEqual([c[1] for c in fake.calls if c[0] == "remove_glob"], ["C:\\Windows\\Temp\\*"])

    def test_bad_sequence_types(self):
        for bad in (3, {"a": 1}, ["ok", 2], None):
            with self.assertRaises(ConfigError) as cm:
                Config.section({"sanitize": {"expensive_categories": bad}}, "sanitize", SanitizeConfig)
            self.assertIn("sanitize.expensive_categories", cm.exception.msg)

    def test_overrides_win_unless_none(self):
        conf = {"sanitize": {"sink_path": "from-file.exe"}}
        self.assertEqual(Config.sanitize(conf, sink_path=None).sink_path, "from-file.exe")
        self.assertEqual(Config.sanitize(conf, sink_path="cli.exe").sink_path, "cli.exe")

    def test_unknown_key(self):
        with self.assertRaises(ConfigError) as cm:
            Config.backup({"backup": {"local_dir": "/data"}})
        self.assertIn("local_dir", cm.exception.msg)

    def test_effective_fills_defaults(self):
        out = Config.effective({"backup": {"remote_suffix": "bk"}}, ["backup"])
        self.assertEqual(list(out), ["backup"])
        self.assertEqual(out["backup"]["remote_suffix"], "bk")
        self.assertEqual(out["backup"]["sync_cmd"], ("manta-sync", "--delete"))


class TestCLIConfigTwoPhaseParse(_ConfigDirCase):
    def test_config_and_cli_flags(self):
        cfg = self.write("cfg.yaml", {"sanitize": {"cleanmgr_path": "clean.exe"}})

        args, conf, _logger = parse_args_with_config(
            build_sanitize_parser(), ["--config", str(cfg), "--sink", "put.exe"], section="sanitize"
        )
        resolved = Config.sanitize(conf, sink_path=args.sink_path, cleanmgr_path=args.cleanmgr_path)

        self.assertEqual(resolved.sink_path, "put.exe")
        self.assertEqual(resolved.cleanmgr_path, "clean.exe")

    def test_defaults_without_config(self):
        args, conf, _logger = parse_args_with_config(build_sanitize_parser(), [], section="sanitize")
        self.assertEqual(conf, {})
        self.assertEqual(Config.sanitize(conf, sink_path=args.sink_path).sink_path, METADATA_SINK)

    def test_dump_config_exits_zero(self):
        cfg = self.write("cfg.yaml", {"sanitize": {"sink_path": "put.exe"}})

        with patch("builtins.print") as mock_print, self.assertRaises(SystemExit) as cm:
            parse_args_with_config(
                build_sanitize_parser(), ["--config", str(cfg), "--dump-config"], section="sanitize"
            )

        self.assertEqual(cm.exception.code, 0)
        dumped = json.loads(mock_print.call_args[0][0])
        self.assertEqual(dumped["sanitize"]["sink_path"], "put.exe")


if __name__ == "__main__":
    unittest.main()
