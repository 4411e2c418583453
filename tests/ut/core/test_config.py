"""Config 加载与覆盖测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from fipsbuild.core.config import Config, get_config, init_config
from fipsbuild.core.exceptions import ConfigError


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "none.yml"))
        assert cfg.compliance_marker == "1"
        assert cfg.system_path == ["/usr/bin", "/bin"]
        assert cfg.test_target == "run_tests"

    def test_known_and_extra_keys(self, tmp_path: Path) -> None:
        p = tmp_path / "c.yml"
        p.write_text(yaml.safe_dump({"work_dir": "/w", "jobs": 8, "owner": "sec"}))
        cfg = Config.from_file(str(p))
        assert cfg.work_dir == "/w"
        assert cfg.jobs == 8
        assert cfg.extra == {"owner": "sec"}

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "c.yml"
        p.write_text(yaml.safe_dump({"jobs": -1}))
        with pytest.raises(ConfigError, match="jobs"):
            Config.from_file(str(p))

    @pytest.mark.parametrize("data, match", [
        ({"jobs": "4"}, "jobs 必须是整数"),
        ({"command_timeout": 1.5}, "command_timeout 必须是整数"),
        ({"jobs": True}, "jobs 必须是整数"),
        ({"compliance_marker": 1}, "compliance_marker 必须是字符串"),
        ({"system_path": "/usr/bin"}, "system_path"),
    ])
    def test_wrong_types_rejected(self, tmp_path: Path, data: dict, match: str) -> None:
        p = tmp_path / "c.yml"
        p.write_text(yaml.safe_dump(data))
        with pytest.raises(ConfigError, match=match):
            Config.from_file(str(p))

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "c.yml"
        p.write_text("jobs: [8\n")
        with pytest.raises(ConfigError, match="配置文件无效"):
            Config.from_file(str(p))

    def test_override_skips_none(self) -> None:
        cfg = Config().override(work_dir="/x", jobs=None)
        assert cfg.work_dir == "/x"
        assert cfg.jobs == 0

    def test_override_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="未知配置项"):
            Config().override(nope="1")

    def test_empty_marker_rejected(self) -> None:
        with pytest.raises(ConfigError, match="compliance_marker"):
            Config().override(compliance_marker="")

    def test_shipped_default_config_loads(self) -> None:
        root = Path(__file__).resolve().parents[3]
        cfg = Config.from_file(str(root / "configs" / "default.yml"))
        assert cfg.extra == {}
        assert cfg.libcrypto == "crypto/libcrypto.a"

    def test_init_config_sets_global(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("fipsbuild.core.config._current", None)
        p = tmp_path / "c.yml"
        p.write_text(yaml.safe_dump({"source_dir": "/src/boringssl"}))
        init_config(str(p))
        assert get_config().source_dir == "/src/boringssl"
