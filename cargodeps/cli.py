#!/usr/bin/env python3
"""
cargodeps/cli.py
================
cargodeps CLI

Usage:
    cargodeps deps config.yaml
    cargodeps tree config.yaml
    cargodeps tree config.yaml --reverse serde --format json
    cargodeps diagram config.yaml -o out/deps.d2 --render out/deps.svg --open
"""

import argparse
import sys

from . import __version__
from .analyzer import DependencyAnalyzer
from .config import AppConfig
from .logs import setup_logging
from .models import CargodepsError, RenderError
from .renderer import D2Renderer, open_image, write_diagram
from .reporters import ConsoleReporter, JsonReporter


def _load_analyzer(args) -> DependencyAnalyzer:
    return DependencyAnalyzer(AppConfig.load(args.config))


# =============================================================================
# Commands
# =============================================================================

def cmd_deps(args):
    """설정 출력 + 직접 의존성 목록"""
    analyzer = _load_analyzer(args)
    reporter = ConsoleReporter(use_color=not args.no_color)

    reporter.report_config(analyzer.config)
    reporter.report_dependencies(
        analyzer.config.package_name, analyzer.direct_dependencies()
    )
    return 0


def cmd_tree(args):
    """의존성 트리 출력 (정방향 / 역방향)"""
    analyzer = _load_analyzer(args)
    traversal = analyzer.tree(reverse_target=args.reverse, exclude_filter=args.exclude)

    if args.format == "json":
        reporter = JsonReporter()
    else:
        reporter = ConsoleReporter(
            use_color=not args.no_color,
            ascii_tree=analyzer.config.ascii_tree
        )

    reporter.report_tree(traversal)
    return 0


def cmd_diagram(args):
    """D2 다이어그램 저장 (+ 렌더링)"""
    analyzer = _load_analyzer(args)
    target = args.output or analyzer.config.diagram_file

    renderer = D2Renderer(binary=args.d2_binary) if args.render else None
    if renderer and not renderer.available:
        raise RenderError(f"d2 binary not found: {renderer.binary}")

    path = write_diagram(analyzer.diagram(reverse=args.reverse), target)
    graph = analyzer.graph
    print(f"D2 diagram written to {path} ({graph.node_count} nodes, {graph.edge_count} edges)")

    if args.render:
        image = renderer.render(path, args.render)
        print(f"Rendered {image}")
        if args.open:
            open_image(image)
    return 0


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cargodeps',
        description='Rust 패키지 의존성 그래프 분석기'
    )
    parser.add_argument('--version', action='version', version=__version__)
    parser.add_argument('--log-level', default='WARNING',
                        help='로그 레벨 (DEBUG, INFO, WARNING, ...)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # deps
    p_deps = subparsers.add_parser('deps', help='직접 의존성 출력')
    p_deps.add_argument('config', nargs='?', default='config.yaml', help='설정 파일 경로')
    p_deps.add_argument('--no-color', action='store_true', help='색상 비활성화')

    # tree
    p_tree = subparsers.add_parser('tree', help='의존성 트리 출력')
    p_tree.add_argument('config', nargs='?', default='config.yaml', help='설정 파일 경로')
    p_tree.add_argument('--reverse', '-r', metavar='PACKAGE',
                        help='PACKAGE를 의존하는 패키지 트리 (역방향)')
    p_tree.add_argument('--exclude', '-x', default=None,
                        help='설정의 exclude_filter 대신 사용할 부분 문자열')
    p_tree.add_argument('--format', '-f', choices=['console', 'json'],
                        default='console', help='출력 형식')
    p_tree.add_argument('--no-color', action='store_true', help='색상 비활성화')

    # diagram
    p_diagram = subparsers.add_parser('diagram', help='D2 다이어그램 생성')
    p_diagram.add_argument('config', nargs='?', default='config.yaml', help='설정 파일 경로')
    p_diagram.add_argument('--output', '-o', help='D2 파일 경로 (기본: 설정의 diagram_path)')
    p_diagram.add_argument('--reverse', action='store_true', help='엣지 방향 반전')
    p_diagram.add_argument('--render', metavar='IMAGE', help='d2로 렌더링할 이미지 경로 (.svg/.png)')
    p_diagram.add_argument('--open', action='store_true', help='렌더링 후 이미지 열기')
    p_diagram.add_argument('--d2-binary', default='d2', help='d2 실행 파일')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'diagram' and args.open and not args.render:
        parser.error("--open requires --render")

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level)

    commands = {
        'deps': cmd_deps,
        'tree': cmd_tree,
        'diagram': cmd_diagram,
    }

    try:
        return commands[args.command](args)
    except CargodepsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
