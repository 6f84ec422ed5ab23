"""
cargodeps/config.py
===================
YAML 설정 파일 로드 및 검증

설정 예시 (config.yaml):

    package_name: tokio
    repo_source: https://github.com/tokio-rs/tokio
    mode: real            # real | test
    ascii_tree: true
    exclude_filter: ""    # 선택
    diagram_path: tokio.d2  # 선택

최상위 `cargodeps:` 키 아래에 넣어도 된다.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .models import ConfigError, Mode

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    """검증된 설정"""
    package_name: str
    repo_source: str
    mode: Mode
    ascii_tree: bool
    exclude_filter: str = ""
    diagram_path: Optional[str] = None

    @property
    def diagram_file(self) -> Path:
        """D2 출력 경로 (기본: <package_name>.d2)"""
        return Path(self.diagram_path or f"{self.package_name}.d2")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "AppConfig":
        """
        설정 파일 로드

        Raises:
            ConfigError: 읽기 실패, YAML 문법 오류, 필수 필드 누락, 잘못된 값
        """
        path = Path(path)
        try:
            with open(path, encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"malformed YAML in {path}: {e}") from e

        config = cls.from_dict(data)
        logger.info("Loaded config from %s (package=%s, mode=%s)",
                    path, config.package_name, config.mode.value)
        return config

    @classmethod
    def from_dict(cls, data: Any) -> "AppConfig":
        if isinstance(data, dict) and isinstance(data.get("cargodeps"), dict):
            data = data["cargodeps"]
        if not isinstance(data, dict):
            raise ConfigError("top level must be a mapping")

        package_name = cls._required_text(data, "package_name")
        repo_source = cls._required_text(data, "repo_source")

        raw_mode = cls._required_text(data, "mode").strip()
        try:
            mode = Mode(raw_mode)
        except ValueError:
            raise ConfigError(
                f"expected 'real' or 'test', got '{raw_mode}'", field="mode"
            ) from None

        ascii_tree = cls._parse_bool(data, "ascii_tree")

        exclude_filter = data.get("exclude_filter")
        if exclude_filter is None:
            exclude_filter = ""
        elif not isinstance(exclude_filter, str):
            raise ConfigError("expected a string", field="exclude_filter")

        diagram_path = data.get("diagram_path")
        if diagram_path is not None and not isinstance(diagram_path, str):
            raise ConfigError("expected a string", field="diagram_path")

        return cls(
            package_name=package_name,
            repo_source=repo_source,
            mode=mode,
            ascii_tree=ascii_tree,
            exclude_filter=exclude_filter,
            diagram_path=diagram_path or None,
        )

    @staticmethod
    def _required_text(data: Dict[str, Any], key: str) -> str:
        value = data.get(key)
        if value is None:
            raise ConfigError("missing required field", field=key)
        if not isinstance(value, str):
            raise ConfigError(f"expected a string, got {type(value).__name__}", field=key)
        if not value.strip():
            raise ConfigError("must not be empty", field=key)
        return value

    @staticmethod
    def _parse_bool(data: Dict[str, Any], key: str) -> bool:
        value = data.get(key)
        if value is None:
            raise ConfigError("missing required field", field=key)
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
        raise ConfigError(f"expected true/false, got '{value}'", field=key)

    def to_dict(self) -> Dict[str, Any]:
        """YAML 직렬화용"""
        result: Dict[str, Any] = {
            "package_name": self.package_name,
            "repo_source": self.repo_source,
            "mode": self.mode.value,
            "ascii_tree": self.ascii_tree,
            "exclude_filter": self.exclude_filter,
        }
        if self.diagram_path:
            result["diagram_path"] = self.diagram_path
        return result

    def save(self, path: Union[str, Path]) -> None:
        """설정을 파일로 저장"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
