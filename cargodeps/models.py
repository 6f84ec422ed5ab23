"""
cargodeps/models.py
===================
공통 타입 정의

설계 원칙:
- 외부 의존성 없음 (순수 Python 표준 라이브러리만)
- 순환 import 방지 (이 모듈은 다른 모듈을 import하지 않음)
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any


# =============================================================================
# 열거형 (Enums)
# =============================================================================

class VisitStatus(Enum):
    """트리 순회 레코드의 상태"""
    NEW = "new"          # 처음 출력되는 노드 (하위 확장됨)
    CYCLE = "cycle"      # 현재 경로에 이미 있음
    VISITED = "visited"  # 다른 가지에서 이미 출력됨


class Mode(Enum):
    """의존성 소스 모드"""
    REAL = "real"  # Cargo.toml (로컬/원격)
    TEST = "test"  # 텍스트 테스트 저장소


class ManifestErrorKind(Enum):
    """Cargo.toml 처리 실패 종류"""
    NETWORK = "network"
    FILE = "file"
    PARSE = "parse"


# =============================================================================
# 예외 (Exceptions)
# =============================================================================

class CargodepsError(Exception):
    """모든 cargodeps 오류의 기본 클래스"""


class ConfigError(CargodepsError):
    """설정 파일 읽기/검증 실패"""

    def __init__(self, reason: str, field: Optional[str] = None):
        self.reason = reason
        self.field = field
        if field:
            super().__init__(f"config field '{field}': {reason}")
        else:
            super().__init__(f"config: {reason}")


class ManifestError(CargodepsError):
    """Cargo.toml 가져오기/파싱 실패"""

    def __init__(self, kind: ManifestErrorKind, source: str, reason: str):
        self.kind = kind
        self.source = source
        self.reason = reason
        super().__init__(f"cannot load Cargo.toml ({kind.value}) from {source}: {reason}")


class FixtureError(CargodepsError):
    """테스트 저장소 파일 읽기/파싱 실패"""

    def __init__(self, path: str, reason: str, line_no: Optional[int] = None):
        self.path = path
        self.reason = reason
        self.line_no = line_no
        where = f"{path}:{line_no}" if line_no else path
        super().__init__(f"test repository {where}: {reason}")


class GraphLoadError(CargodepsError, ValueError):
    """load_from_map에 잘못된 매핑이 전달됨 (그래프는 변경되지 않음)"""


class ExportError(CargodepsError):
    """다이어그램 파일 저장 실패"""


class RenderError(CargodepsError):
    """d2 렌더러 실행 실패"""


# =============================================================================
# 그래프 관련 데이터 클래스
# =============================================================================

@dataclass
class PackageNode:
    """패키지 노드 (의존성 목록은 삽입 순서 유지, 중복 없음)"""
    name: str
    dependencies: List[str] = field(default_factory=list)

    def add_dependency(self, name: str) -> bool:
        """의존성 추가 (이미 있으면 False)"""
        if name in self.dependencies:
            return False
        self.dependencies.append(name)
        return True


@dataclass(frozen=True)
class TraversalRecord:
    """트리 순회 결과 한 줄"""
    depth: int
    name: str
    status: VisitStatus = VisitStatus.NEW

    INDENT = "  "

    @property
    def label(self) -> str:
        if self.status == VisitStatus.NEW:
            return self.name
        return f"{self.name} ({self.status.value})"

    def to_line(self) -> str:
        """`<indent><name>[ (cycle|visited)]` 형식"""
        return f"{self.INDENT * self.depth}{self.label}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "depth": self.depth,
            "name": self.name,
            "status": self.status.value,
        }

    def __str__(self) -> str:
        return self.to_line()
