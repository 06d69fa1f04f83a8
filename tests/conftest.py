import sys
from collections.abc import Callable
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import iana_gen  # noqa: E402

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

FIXTURE_FILES = {
    iana_gen.CAPABILITY.url: "capability-codes.xml",
    iana_gen.AFI.url: "address-family-numbers.xml",
    iana_gen.SAFI.url: "safi-namespace.xml",
}


class FakeResponse:
    def __init__(self, status_code: int, content: bytes):
        self.status_code = status_code
        self.content = content
        self.closed = False

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info: object) -> bool:
        self.closed = True
        return False


class FakeSession:
    """Stands in for requests.Session; routes map URL -> (status, body) or exception."""

    def __init__(self, routes: dict[str, tuple[int, bytes] | Exception]):
        self.routes = routes
        self.calls: list[tuple[str, float | None]] = []
        self.responses: list[FakeResponse] = []
        self.closed = False

    def get(self, url: str, timeout: float | None = None) -> FakeResponse:
        self.calls.append((url, timeout))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        status_code, content = route
        response = FakeResponse(status_code, content)
        self.responses.append(response)
        return response

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: object) -> bool:
        self.close()
        return False


@pytest.fixture
def fixture_bytes() -> Callable[[str], bytes]:
    def _fixture_bytes(name: str) -> bytes:
        return (FIXTURES_DIR / name).read_bytes()

    return _fixture_bytes


@pytest.fixture
def registry_routes(
    fixture_bytes: Callable[[str], bytes],
) -> dict[str, tuple[int, bytes] | Exception]:
    return {url: (200, fixture_bytes(name)) for url, name in FIXTURE_FILES.items()}


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    def _make_session(routes: dict[str, tuple[int, bytes] | Exception]) -> FakeSession:
        return FakeSession(dict(routes))

    return _make_session


@pytest.fixture
def make_subregistry() -> Callable[..., iana_gen.SubRegistry]:
    def _make_subregistry(
        records: list[tuple[str, str]], title: str = "Test Values"
    ) -> iana_gen.SubRegistry:
        return iana_gen.SubRegistry(
            title=title,
            records=tuple(
                iana_gen.RawRecord(value=value, description=description)
                for value, description in records
            ),
        )

    return _make_subregistry


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., iana_gen.GenerateConfig]:
    def _make_config(**overrides: object) -> iana_gen.GenerateConfig:
        base: dict[str, object] = {
            "output": tmp_path / "iana_const.go",
            "package": "corebgp",
            "timeout": 10.0,
            "gofmt": "gofmt",
            "format_source": False,
        }
        base.update(overrides)
        return iana_gen.GenerateConfig(**base)

    return _make_config
