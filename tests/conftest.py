"""Root conftest.py for test configuration and shared fixtures.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from extannotations.config.models import AnnotationsConfig, LocationsConfig  # noqa: E402
from extannotations.parsing import AnnotationDocumentParser  # noqa: E402
from extannotations.providers import reset_global_cache  # noqa: E402
from extannotations.storage.annotation_map import AnnotationMap  # noqa: E402
from extannotations.watcher import ChangeCallback, FileChangeEvent  # noqa: E402

NOT_NULL = "M:JetBrains.Annotations.NotNullAttribute.#ctor"
CAN_BE_NULL = "M:JetBrains.Annotations.CanBeNullAttribute.#ctor"

SCENARIO_DOCUMENT = f"""<?xml version="1.0" encoding="utf-8"?>
<assembly name="N">
  <member name="M:N.C.Foo">
    <attribute ctor="{NOT_NULL}" />
    <parameter name="x">
      <attribute ctor="{CAN_BE_NULL}" />
    </parameter>
  </member>
</assembly>
"""


class CountingParser(AnnotationDocumentParser):
    """Parser that records which files it parsed."""

    def __init__(self) -> None:
        self.parsed: list[Path] = []

    @property
    def calls(self) -> int:
        return len(self.parsed)

    def parse_file(self, path: Path, result: AnnotationMap) -> None:
        self.parsed.append(path)
        super().parse_file(path, result)


@dataclass
class FakeWatchHandle:
    path: Path
    callback: ChangeCallback
    stopped: bool = False

    def stop(self) -> None:
        self.stopped = True

    def fire(self, event: FileChangeEvent) -> None:
        self.callback(event)


@dataclass
class FakeWatcherFactory:
    """WatcherFactory that hands out controllable handles instead of threads."""

    handles: list[FakeWatchHandle] = field(default_factory=list)

    def __call__(self, path: Path, callback: ChangeCallback) -> FakeWatchHandle:
        handle = FakeWatchHandle(path, callback)
        self.handles.append(handle)
        return handle

    def for_path(self, path: Path) -> FakeWatchHandle:
        return next(h for h in reversed(self.handles) if h.path == path)


@pytest.fixture(autouse=True)
def _restore_global_cache() -> Iterator[None]:
    """Never let a test leak a process-wide annotation map into another."""
    yield
    reset_global_cache()


@pytest.fixture
def counting_parser() -> CountingParser:
    return CountingParser()


@pytest.fixture
def fake_watchers() -> FakeWatcherFactory:
    return FakeWatcherFactory()


@pytest.fixture
def config(tmp_path: Path) -> AnnotationsConfig:
    """Configuration whose roots and cache file all live under tmp_path."""
    return AnnotationsConfig(
        locations=LocationsConfig(
            system_root=str(tmp_path / "system"),
            user_root=str(tmp_path / "user"),
            nuget_root=str(tmp_path / "nuget"),
            cache_path=str(tmp_path / "cache" / "external-annotations.cache"),
        )
    )


@pytest.fixture
def write_xml() -> Callable[[Path, str], Path]:
    """Write an annotation document, creating parent folders."""

    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class AnnotationXml:
    """Builders for annotation documents."""

    not_null = NOT_NULL
    can_be_null = CAN_BE_NULL
    scenario = SCENARIO_DOCUMENT

    @staticmethod
    def member(name: str, *, nullable: bool = False, parameters: tuple[str, ...] = ()) -> str:
        """Render one <member>; ``parameters`` are all annotated."""
        parts = [f'  <member name="{name}">']
        if nullable:
            parts.append(f'    <attribute ctor="{NOT_NULL}" />')
        for parameter in parameters:
            parts.append(f'    <parameter name="{parameter}">')
            parts.append(f'      <attribute ctor="{CAN_BE_NULL}" />')
            parts.append("    </parameter>")
        parts.append("  </member>")
        return "\n".join(parts)

    @staticmethod
    def document(*members: str) -> str:
        body = "\n".join(members)
        return (
            '<?xml version="1.0" encoding="utf-8"?>\n'
            f'<assembly name="Test">\n{body}\n</assembly>\n'
        )


@pytest.fixture
def annotation_xml() -> type[AnnotationXml]:
    return AnnotationXml
