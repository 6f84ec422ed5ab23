"""
cargodeps - Rust 패키지 의존성 그래프 분석기
============================================

기능:
1. 의존성 소스: Cargo.toml (로컬/GitHub), 텍스트 테스트 저장소
2. 트리 출력: 정방향/역방향, 순환/중복 표시, 부분 문자열 제외 필터
3. 시각화: D2 다이어그램 (+ d2 렌더링)

사용법:
    # CLI
    cargodeps tree config.yaml
    cargodeps tree config.yaml --reverse serde
    cargodeps diagram config.yaml --render deps.svg

    # Python API
    from cargodeps import DependencyGraph

    graph = DependencyGraph()
    graph.load_from_map({"A": ["B", "C"], "B": ["C"], "C": []})
    for line in graph.walk("A").lines():
        print(line)

    print(graph.to_d2())
"""

__version__ = "0.1.0"

# 모델
from .models import (
    # Enums
    VisitStatus, Mode, ManifestErrorKind,

    # Exceptions
    CargodepsError, ConfigError, ManifestError, FixtureError,
    GraphLoadError, ExportError, RenderError,

    # Data classes
    PackageNode, TraversalRecord,
)

# 그래프
from .graph import DependencyGraph, Traversal

# 설정
from .config import AppConfig

# 소스
from .sources import (
    get_dependencies, parse_manifest, manifest_url,
    load_test_repo, parse_test_repo,
)

# 분석기
from .analyzer import DependencyAnalyzer, analyze

# 렌더러
from .renderer import D2Renderer, write_diagram, open_image

# 리포터
from .reporters import ConsoleReporter, JsonReporter

# 로깅
from .logs import setup_logging

# CLI
from .cli import main as cli_main

__all__ = [
    # Version
    '__version__',

    # Enums
    'VisitStatus', 'Mode', 'ManifestErrorKind',

    # Exceptions
    'CargodepsError', 'ConfigError', 'ManifestError', 'FixtureError',
    'GraphLoadError', 'ExportError', 'RenderError',

    # Models
    'PackageNode', 'TraversalRecord',

    # Graph
    'DependencyGraph', 'Traversal',

    # Config
    'AppConfig',

    # Sources
    'get_dependencies', 'parse_manifest', 'manifest_url',
    'load_test_repo', 'parse_test_repo',

    # Analyzer
    'DependencyAnalyzer', 'analyze',

    # Renderer
    'D2Renderer', 'write_diagram', 'open_image',

    # Reporters
    'ConsoleReporter', 'JsonReporter',

    # Logging
    'setup_logging',

    # CLI
    'cli_main',
]
