"""
cargodeps/graph.py
==================
의존성 그래프 자료구조 및 순회/내보내기

기능:
- 패키지 이름 기반 방향 그래프 (중복 엣지 없음, 끊어진 엣지 없음)
- 순환 안전 DFS 트리 순회 (정방향 / 역방향)
- 부분 문자열 제외 필터 (필터된 노드의 하위 트리 전체 제거)
- D2 다이어그램 내보내기
"""

import logging
import re
from collections import defaultdict
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from .models import PackageNode, TraversalRecord, VisitStatus, GraphLoadError

logger = logging.getLogger(__name__)

NeighborLookup = Callable[[str], Iterable[str]]

_D2_INVALID = re.compile(r"[^A-Za-z0-9_]")


class Traversal:
    """
    지연 평가되는 DFS 순회 (전위 순회)

    반복할 때마다 처음부터 다시 계산하므로 여러 번 순회해도 같은 결과를 낸다.
    재귀 대신 이웃 이터레이터 스택을 사용하므로 깊은 그래프에서도
    인터프리터 재귀 한도에 걸리지 않는다.

    규칙 (이름을 만날 때마다):
    1. 필터 문자열을 포함하면 조용히 건너뜀 (하위 트리 포함)
    2. 현재 경로에 있으면 CYCLE 레코드
    3. 이미 출력했으면 VISITED 레코드
    4. 아니면 NEW 레코드 후 이웃으로 내려감
    """

    def __init__(
        self,
        root: str,
        lookup_factory: Callable[[], NeighborLookup],
        exclude_filter: str = "",
    ):
        self.root = root
        self.exclude_filter = (exclude_filter or "").strip()
        self._lookup_factory = lookup_factory

    def __iter__(self) -> Iterator[TraversalRecord]:
        return self._walk(self._lookup_factory())

    def _is_excluded(self, name: str) -> bool:
        return bool(self.exclude_filter) and self.exclude_filter in name

    def _walk(self, neighbors: NeighborLookup) -> Iterator[TraversalRecord]:
        visited: Set[str] = set()
        path: List[str] = []
        on_path: Set[str] = set()
        # len(stack) == len(path) + 1
        stack: List[Iterator[str]] = [iter([self.root])]

        while stack:
            name = next(stack[-1], None)
            if name is None:
                stack.pop()
                if path:
                    on_path.discard(path.pop())
                continue

            if self._is_excluded(name):
                continue

            depth = len(path)
            if name in on_path:
                yield TraversalRecord(depth, name, VisitStatus.CYCLE)
                continue
            if name in visited:
                yield TraversalRecord(depth, name, VisitStatus.VISITED)
                continue

            yield TraversalRecord(depth, name)
            visited.add(name)
            path.append(name)
            on_path.add(name)
            stack.append(iter(neighbors(name)))

    def records(self) -> List[TraversalRecord]:
        return list(self)

    def lines(self) -> List[str]:
        """`<indent><name>` 형식의 출력 줄 목록"""
        return [record.to_line() for record in self]

    def __repr__(self) -> str:
        return f"Traversal(root={self.root!r}, exclude_filter={self.exclude_filter!r})"


class DependencyGraph:
    """
    의존성 그래프 (방향 그래프)

    내부 구조:
    - _nodes: 노드 정보 맵 {이름: PackageNode} (삽입 순서 유지)

    역방향 인덱스는 저장하지 않고 요청할 때마다 다시 계산한다.
    로드 단계가 끝나면 읽기 전용으로 취급한다.
    """

    def __init__(self):
        self._nodes: Dict[str, PackageNode] = {}

    # =========================================================================
    # 노드/엣지 추가
    # =========================================================================

    def ensure_node(self, name: str) -> PackageNode:
        """노드가 없으면 빈 의존성 목록으로 추가"""
        node = self._nodes.get(name)
        if node is None:
            node = PackageNode(name=name)
            self._nodes[name] = node
        return node

    def add_edge(self, package: str, depends_on: str) -> bool:
        """
        엣지 package → depends_on 추가 (누적)

        양 끝 노드를 보장하고, 이미 있는 엣지는 무시한다.
        자기 자신으로의 엣지도 허용된다 (1-노드 순환).

        Returns:
            새 엣지가 추가되었으면 True
        """
        node = self.ensure_node(package)
        self.ensure_node(depends_on)
        return node.add_dependency(depends_on)

    def add_package(self, name: str, dependencies: Iterable[str]) -> PackageNode:
        """
        노드의 의존성 목록을 통째로 교체

        루트 하나의 직접 의존성만 알 때 사용한다. add_edge와 달리
        기존 목록에 누적하지 않는다.
        """
        deps: List[str] = []
        for dep in dependencies:
            if dep not in deps:
                deps.append(dep)

        for dep in deps:
            self.ensure_node(dep)

        node = PackageNode(name=name, dependencies=deps)
        self._nodes[name] = node
        return node

    def load_from_map(self, mapping: Mapping[str, Iterable[str]]):
        """
        {패키지: [의존성, ...]} 맵으로 그래프 로드

        전부 적용되거나 전혀 적용되지 않는다: 복사본에 먼저 적용하고
        검증을 모두 통과하면 교체한다.

        Raises:
            GraphLoadError: 이름이 비어 있거나 문자열이 아닌 경우,
                의존성 목록이 리스트 형태가 아닌 경우
        """
        staged = self.copy()

        for package, deps in mapping.items():
            self._check_name(package, "package name")
            if isinstance(deps, (str, bytes)) or not isinstance(deps, Iterable):
                raise GraphLoadError(
                    f"dependencies of {package!r} must be a list of names, "
                    f"got {type(deps).__name__}"
                )

            staged.ensure_node(package)
            for dep in deps:
                self._check_name(dep, f"dependency of {package!r}")
                staged.add_edge(package, dep)

        self._nodes = staged._nodes
        logger.info("Loaded %d packages (%d nodes, %d edges)",
                    len(mapping), self.node_count, self.edge_count)

    @staticmethod
    def _check_name(name, what: str):
        if not isinstance(name, str):
            raise GraphLoadError(f"{what} must be a string, got {type(name).__name__}")
        if not name:
            raise GraphLoadError(f"{what} must not be empty")

    # =========================================================================
    # 조회 메서드
    # =========================================================================

    def has_node(self, name: str) -> bool:
        return name in self._nodes

    def has_edge(self, source: str, target: str) -> bool:
        node = self._nodes.get(source)
        return node is not None and target in node.dependencies

    def get_node(self, name: str) -> Optional[PackageNode]:
        return self._nodes.get(name)

    def get_dependencies(self, node: str) -> List[str]:
        """노드의 직접 의존성 (정방향)"""
        found = self._nodes.get(node)
        return list(found.dependencies) if found else []

    def get_dependents(self, node: str) -> List[str]:
        """노드를 직접 의존하는 패키지 (역방향)"""
        return list(self.build_reverse_index().get(node, []))

    def get_all_nodes(self) -> List[str]:
        return list(self._nodes.keys())

    def get_all_edges(self) -> List[Tuple[str, str]]:
        return [
            (name, dep)
            for name, node in self._nodes.items()
            for dep in node.dependencies
        ]

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(node.dependencies) for node in self._nodes.values())

    # =========================================================================
    # 역방향 인덱스
    # =========================================================================

    def build_reverse_index(self) -> Dict[str, List[str]]:
        """
        {의존성: [이를 직접 의존하는 패키지, ...]} 맵 생성

        가장 나중에 추가된 패키지가 먼저 오도록 노드를 역순으로 훑는다.
        캐시하지 않는다.
        """
        reverse: Dict[str, List[str]] = defaultdict(list)
        for name in reversed(list(self._nodes)):
            for dep in self._nodes[name].dependencies:
                reverse[dep].append(name)
        return dict(reverse)

    def reversed_graph(self) -> "DependencyGraph":
        """모든 엣지를 뒤집은 새 그래프"""
        graph = DependencyGraph()
        for name in self._nodes:
            graph.ensure_node(name)
        for dep, dependents in self.build_reverse_index().items():
            for parent in dependents:
                graph.add_edge(dep, parent)
        return graph

    # =========================================================================
    # 트리 순회
    # =========================================================================

    def walk(self, root: str, exclude_filter: str = "") -> Traversal:
        """root가 의존하는 것들 (정방향 트리)"""
        return Traversal(root, lambda: self._forward_lookup, exclude_filter)

    def walk_reverse(self, target: str, exclude_filter: str = "") -> Traversal:
        """target을 의존하는 것들 (역방향 트리)"""
        return Traversal(target, self._reverse_lookup, exclude_filter)

    def tree_lines(self, root: str, exclude_filter: str = "", reverse: bool = False) -> List[str]:
        traversal = self.walk_reverse(root, exclude_filter) if reverse else self.walk(root, exclude_filter)
        return traversal.lines()

    def _forward_lookup(self, name: str) -> List[str]:
        node = self._nodes.get(name)
        return node.dependencies if node else []

    def _reverse_lookup(self) -> NeighborLookup:
        reverse = self.build_reverse_index()
        return lambda name: reverse.get(name, [])

    # =========================================================================
    # D2 시각화
    # =========================================================================

    def to_d2(self, reverse: bool = False) -> str:
        """
        D2 형식 그래프 문자열 생성

        Args:
            reverse: True면 엣지 방향을 뒤집음 (의존성 → 패키지)

        Returns:
            헤더, 노드 선언, 중복 없는 엣지 목록으로 구성된 D2 문서
        """
        edges: Dict[Tuple[str, str], None] = {}
        for name, node in self._nodes.items():
            for dep in node.dependencies:
                source, target = (dep, name) if reverse else (name, dep)
                edges.setdefault((self._d2_id(source), self._d2_id(target)))

        lines = ["direction: right", ""]

        # 엣지 없는 노드도 보이도록 전부 선언
        declared: Dict[str, str] = {}
        for name in self._nodes:
            node_id = self._d2_id(name)
            previous = declared.setdefault(node_id, name)
            if previous != name:
                logger.warning("D2 identifier %r is shared by %r and %r", node_id, previous, name)
            lines.append(f"{node_id}: {name}")
        lines.append("")

        for source_id, target_id in edges:
            lines.append(f"{source_id} -> {target_id}")

        return "\n".join(lines) + "\n"

    @staticmethod
    def _d2_id(name: str) -> str:
        """D2 노드 ID ([A-Za-z0-9_] 외 문자는 '_')"""
        return _D2_INVALID.sub("_", name) or "_"

    # =========================================================================
    # 유틸리티
    # =========================================================================

    def copy(self) -> "DependencyGraph":
        graph = DependencyGraph()
        graph._nodes = {
            name: PackageNode(name=name, dependencies=list(node.dependencies))
            for name, node in self._nodes.items()
        }
        return graph

    def get_roots(self) -> List[str]:
        """루트 노드들 (아무도 의존하지 않는 노드)"""
        reverse = self.build_reverse_index()
        return [n for n in self._nodes if not reverse.get(n)]

    def get_leaves(self) -> List[str]:
        """리프 노드들 (다른 것에 의존하지 않는 노드)"""
        return [n for n, node in self._nodes.items() if not node.dependencies]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: str) -> bool:
        return node in self._nodes

    def __repr__(self) -> str:
        return f"DependencyGraph(nodes={self.node_count}, edges={self.edge_count})"
