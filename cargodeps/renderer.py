"""
cargodeps/renderer.py
=====================
D2 다이어그램 저장 및 렌더링

- write_diagram: D2 텍스트를 파일로 저장
- D2Renderer: 외부 `d2` 바이너리로 SVG/PNG 생성
- open_image: 기본 뷰어로 결과 열기
"""

import logging
import shutil
import subprocess
import webbrowser
from pathlib import Path
from typing import Optional, Union

from .models import ExportError, RenderError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def write_diagram(text: str, path: PathLike) -> Path:
    """D2 텍스트 저장 (상위 디렉토리 자동 생성)"""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
    except OSError as e:
        raise ExportError(f"cannot write diagram to {path}: {e}") from e

    logger.info("Wrote D2 diagram to %s", path)
    return path


class D2Renderer:
    """`d2 <input> <output>` 실행기"""

    def __init__(self, binary: str = "d2", timeout: int = 60):
        self.binary = binary
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def render(self, source: PathLike, output: PathLike) -> Path:
        """
        D2 파일을 이미지로 렌더링

        Raises:
            RenderError: 바이너리 없음, 실행 불가 (권한 등), 시간 초과, 0이 아닌 종료 코드
        """
        output = Path(output)
        cmd = [self.binary, str(source), str(output)]
        logger.debug("Running %s", " ".join(cmd))

        try:
            res = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise RenderError(f"d2 binary not found: {self.binary}") from e
        except OSError as e:
            raise RenderError(f"cannot run {self.binary}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise RenderError(f"d2 timed out after {self.timeout}s rendering {source}") from e

        if res.returncode != 0:
            detail = (res.stderr or res.stdout or "").strip()
            raise RenderError(
                f"d2 exited with code {res.returncode} rendering {source}: {detail}"
            )

        logger.info("Rendered %s -> %s", source, output)
        return output


def open_image(path: PathLike, browser: Optional[webbrowser.BaseBrowser] = None) -> bool:
    """렌더링된 이미지를 기본 뷰어로 열기 (실행되었으면 True)"""
    uri = Path(path).resolve().as_uri()
    opener = browser or webbrowser
    launched = opener.open(uri)
    if not launched:
        logger.warning("No viewer available to open %s", uri)
    return bool(launched)
