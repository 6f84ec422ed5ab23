"""
cargodeps/sources.py
====================
의존성 소스 로더

지원 소스:
- Cargo.toml: 로컬 파일/디렉토리 또는 GitHub 저장소 URL ([dependencies] 섹션)
- 테스트 저장소: `PKG: DEP DEP ...` 형식의 텍스트 파일
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Union

import requests

from .models import ManifestError, ManifestErrorKind, FixtureError

logger = logging.getLogger(__name__)

GITHUB_PREFIX = "https://github.com/"
RAW_GITHUB = "https://raw.githubusercontent.com"
DEFAULT_BRANCH = "master"
DEFAULT_TIMEOUT = 10

_SECTION_HEADER = re.compile(r'^\[.*\]$')


# =============================================================================
# Cargo.toml
# =============================================================================

def manifest_url(repo_source: str) -> str:
    """
    저장소 URL → 원본 Cargo.toml URL

    https://github.com/tokio-rs/tokio
        → https://raw.githubusercontent.com/tokio-rs/tokio/master/Cargo.toml
    https://example.com/repo.git
        → https://example.com/repo/master/Cargo.toml
    """
    if repo_source.endswith("Cargo.toml"):
        return repo_source
    if repo_source.endswith(".git"):
        return f"{repo_source[:-len('.git')]}/{DEFAULT_BRANCH}/Cargo.toml"

    repo_path = repo_source
    if repo_path.startswith(GITHUB_PREFIX):
        repo_path = repo_path[len(GITHUB_PREFIX):]
    repo_path = repo_path.rstrip('/')
    return f"{RAW_GITHUB}/{repo_path}/{DEFAULT_BRANCH}/Cargo.toml"


def fetch_manifest(repo_source: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """원격 저장소에서 Cargo.toml 내용 가져오기"""
    url = manifest_url(repo_source)
    logger.info("Fetching Cargo.toml from %s", url)

    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise ManifestError(ManifestErrorKind.NETWORK, url, str(e)) from e

    if not 200 <= response.status_code < 300:
        raise ManifestError(
            ManifestErrorKind.NETWORK, url, f"HTTP {response.status_code}"
        )
    return response.text


def read_manifest(path: Union[str, Path]) -> str:
    """로컬 Cargo.toml 읽기 (디렉토리면 그 안의 Cargo.toml)"""
    path = Path(path)
    if path.is_dir():
        path = path / "Cargo.toml"
    logger.info("Reading local Cargo.toml: %s", path)

    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        raise ManifestError(ManifestErrorKind.FILE, str(path), str(e)) from e


def parse_manifest(content: str, source: str = "<string>") -> List[str]:
    """
    [dependencies] 섹션에서 직접 의존성 이름 추출

    `serde = "1.0"`, `tokio = { version = "1", features = [...] }` 모두
    `=` 왼쪽만 사용한다.

    Raises:
        ManifestError: [dependencies] 섹션이 없거나 비어 있음
    """
    deps: List[str] = []
    in_deps = False
    found_section = False

    for line in content.splitlines():
        line = line.strip()

        if _SECTION_HEADER.match(line):
            in_deps = line == "[dependencies]"
            found_section = found_section or in_deps
            if found_section and not in_deps:
                break
            continue

        if not in_deps or not line or line.startswith('#'):
            continue

        if '=' in line:
            name = line.split('=', 1)[0].strip().strip('"\'')
            if name and name not in deps:
                deps.append(name)

    if not deps:
        reason = "[dependencies] section is empty" if found_section else "no [dependencies] section"
        raise ManifestError(ManifestErrorKind.PARSE, source, reason)

    return deps


def get_dependencies(repo_source: str, timeout: float = DEFAULT_TIMEOUT) -> List[str]:
    """
    로컬 경로 또는 URL에서 직접 의존성 목록 추출

    Raises:
        ManifestError: 네트워크/파일/형식 오류
    """
    if repo_source.startswith("http"):
        content = fetch_manifest(repo_source, timeout=timeout)
    elif Path(repo_source).exists():
        content = read_manifest(repo_source)
    else:
        raise ManifestError(
            ManifestErrorKind.FILE, repo_source, "file or URL not found"
        )

    deps = parse_manifest(content, source=repo_source)
    logger.info("Found %d direct dependencies in %s", len(deps), repo_source)
    return deps


# =============================================================================
# 테스트 저장소
# =============================================================================

def parse_test_repo(content: str, source: str = "<string>") -> Dict[str, List[str]]:
    """
    `A: B C` 형식 텍스트 파싱

    빈 줄과 `#` 주석은 무시한다. 같은 패키지가 다시 나오면 나중 줄이 이긴다.
    """
    repo: Dict[str, List[str]] = {}

    for line_no, line in enumerate(content.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue

        package, sep, rest = line.partition(':')
        package = package.strip()
        if not sep:
            raise FixtureError(source, f"invalid line format: '{line}'", line_no)
        if not package:
            raise FixtureError(source, f"missing package name: '{line}'", line_no)

        repo[package] = rest.split()

    return repo


def load_test_repo(path: Union[str, Path]) -> Dict[str, List[str]]:
    """테스트 저장소 파일 로드"""
    path = Path(path)
    try:
        content = path.read_text(encoding='utf-8')
    except OSError as e:
        raise FixtureError(str(path), f"cannot read test repository file: {e}") from e

    repo = parse_test_repo(content, source=str(path))
    logger.info("Loaded test repository %s (%d packages)", path, len(repo))
    return repo


__all__ = [
    'manifest_url',
    'fetch_manifest',
    'read_manifest',
    'parse_manifest',
    'get_dependencies',
    'parse_test_repo',
    'load_test_repo',
]
