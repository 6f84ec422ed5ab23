"""
cargodeps/reporters.py
======================
결과 리포터

지원 형식:
- Console: 들여쓰기/ASCII 트리, ANSI 색상 지원 터미널 출력
- JSON: 기계 판독용 JSON
"""

import json
import sys
import os
from typing import IO, Optional, Dict, Iterable, List
from abc import ABC, abstractmethod

from .config import AppConfig
from .models import TraversalRecord, VisitStatus


# =============================================================================
# ANSI 색상 코드
# =============================================================================

class Colors:
    """ANSI 색상 코드"""
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GRAY = "\033[90m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


# =============================================================================
# 기본 리포터
# =============================================================================

class BaseReporter(ABC):
    """리포터 기본 클래스"""

    def __init__(self, output: Optional[IO[str]] = None):
        self.output = output or sys.stdout

    def write(self, text: str):
        self.output.write(text)

    def writeln(self, text: str = ""):
        self.output.write(text + "\n")

    @abstractmethod
    def report_tree(self, records: Iterable[TraversalRecord]):
        """트리 순회 결과 출력"""
        pass


# =============================================================================
# 콘솔 리포터
# =============================================================================

class ConsoleReporter(BaseReporter):
    """
    콘솔 출력 리포터

    기본 출력은 깊이마다 공백 두 칸 들여쓰기:

        A
          B
            C
          C (visited)

    ascii_tree=True면 연결선으로 그린다:

        A
        ├── B
        │   └── C
        └── C (visited)
    """

    STATUS_COLORS: Dict[VisitStatus, str] = {
        VisitStatus.CYCLE: Colors.RED,
        VisitStatus.VISITED: Colors.GRAY,
    }

    BRANCH = "├── "
    LAST_BRANCH = "└── "
    PIPE = "│   "
    SPACE = "    "

    def __init__(
        self,
        output: Optional[IO[str]] = None,
        use_color: bool = True,
        ascii_tree: bool = False
    ):
        super().__init__(output)
        self.ascii_tree = ascii_tree

        # 색상 사용 여부 결정
        self.use_color = use_color
        if os.getenv("NO_COLOR"):
            self.use_color = False
        if hasattr(self.output, 'isatty') and not self.output.isatty():
            self.use_color = False

    def color(self, text: str, color: str) -> str:
        if self.use_color:
            return f"{color}{text}{Colors.RESET}"
        return text

    def _label(self, record: TraversalRecord) -> str:
        color = self.STATUS_COLORS.get(record.status)
        return self.color(record.label, color) if color else record.label

    def report_tree(self, records: Iterable[TraversalRecord]):
        records = list(records)
        if self.ascii_tree:
            lines = self.format_ascii(records)
        else:
            lines = [TraversalRecord.INDENT * r.depth + self._label(r) for r in records]

        for line in lines:
            self.writeln(line)

    def format_ascii(self, records: List[TraversalRecord]) -> List[str]:
        """전위 순회 레코드를 연결선 트리로 변환"""
        # 같은 부모 아래 뒤따르는 형제가 있는지 뒤에서부터 계산
        is_last = [True] * len(records)
        pending: set = set()
        for i in range(len(records) - 1, -1, -1):
            depth = records[i].depth
            is_last[i] = depth not in pending
            pending = {d for d in pending if d < depth}
            pending.add(depth)

        lines: List[str] = []
        ancestors_last: List[bool] = []
        for record, last in zip(records, is_last):
            del ancestors_last[record.depth:]
            if record.depth == 0:
                prefix = ""
            else:
                prefix = "".join(
                    self.SPACE if done else self.PIPE
                    for done in ancestors_last[1:record.depth]
                )
                prefix += self.LAST_BRANCH if last else self.BRANCH
            ancestors_last.extend([True] * (record.depth - len(ancestors_last)))
            ancestors_last.append(last)
            lines.append(prefix + self._label(record))

        return lines

    def report_dependencies(self, package: str, dependencies: List[str]):
        """직접 의존성 목록 출력"""
        self.writeln()
        self.writeln(self.color(f"Direct package dependencies '{package}':", Colors.BOLD))
        if not dependencies:
            self.writeln("  (none)")
        for dep in dependencies:
            self.writeln(f"- {dep}")

    def report_config(self, config: AppConfig):
        """로드된 설정 출력"""
        self.writeln(self.color("--- Config ---", Colors.BOLD))
        for key, value in config.to_dict().items():
            self.writeln(f"  {key}: {value}")


# =============================================================================
# JSON 리포터
# =============================================================================

class JsonReporter(BaseReporter):
    """JSON 형식 리포터"""

    def __init__(self, output: Optional[IO[str]] = None, indent: int = 2):
        super().__init__(output)
        self.indent = indent

    def report_tree(self, records: Iterable[TraversalRecord]):
        data = [record.to_dict() for record in records]
        self.writeln(json.dumps(data, indent=self.indent, ensure_ascii=False))


__all__ = [
    'Colors',
    'BaseReporter',
    'ConsoleReporter',
    'JsonReporter',
]
