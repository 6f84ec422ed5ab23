"""
cargodeps/analyzer.py
=====================
설정 → 그래프 구축 → 트리/다이어그램

모드:
- real: Cargo.toml의 직접 의존성만 (루트 하나 + 의존성 목록)
- test: 테스트 저장소 파일의 전체 패키지 맵
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .config import AppConfig
from .graph import DependencyGraph, Traversal
from .models import Mode
from .sources import get_dependencies, load_test_repo

logger = logging.getLogger(__name__)


class DependencyAnalyzer:
    """
    설정 하나에 대한 의존성 분석기

    그래프는 build_graph()에서 한 번만 채워지고 이후에는 읽기만 한다.
    """

    def __init__(self, config: AppConfig, timeout: float = 10):
        self.config = config
        self.timeout = timeout
        self.graph = DependencyGraph()
        self._built = False

    def build_graph(self) -> DependencyGraph:
        """의존성 소스에서 그래프 구축 (이미 구축했으면 그대로 반환)"""
        if self._built:
            return self.graph

        cfg = self.config
        if cfg.mode == Mode.REAL:
            deps = get_dependencies(cfg.repo_source, timeout=self.timeout)
            self.graph.add_package(cfg.package_name, deps)
        else:
            self.graph.load_from_map(load_test_repo(cfg.repo_source))

        self._built = True
        logger.info("Built %r for %s", self.graph, cfg.package_name)
        return self.graph

    def direct_dependencies(self) -> List[str]:
        return self.build_graph().get_dependencies(self.config.package_name)

    def tree(self, reverse_target: Optional[str] = None, exclude_filter: Optional[str] = None) -> Traversal:
        """
        의존성 트리

        Args:
            reverse_target: 지정하면 이 패키지를 의존하는 쪽으로 역방향 순회
            exclude_filter: 설정의 exclude_filter 대신 사용할 필터
        """
        graph = self.build_graph()
        if exclude_filter is None:
            exclude_filter = self.config.exclude_filter

        if reverse_target:
            return graph.walk_reverse(reverse_target, exclude_filter)
        return graph.walk(self.config.package_name, exclude_filter)

    def diagram(self, reverse: bool = False) -> str:
        return self.build_graph().to_d2(reverse=reverse)


def analyze(config_path: Union[str, Path]) -> DependencyAnalyzer:
    """설정 파일을 읽고 그래프까지 구축한 분석기 반환"""
    analyzer = DependencyAnalyzer(AppConfig.load(config_path))
    analyzer.build_graph()
    return analyzer
